import numpy as np
import pandas as pd
import pytest

from socio_music.config import MUSIC_FEATURES, SOCIO_FEATURES

YOUNG_AGES = [24.0, 27.5, 29.0, 31.5, 35.0]
OLD_AGES = [41.0, 43.5, 45.0, 47.0, 49.5]


def make_tracks(rows_per_country: int = 20, seed: int = 0) -> pd.DataFrame:
    """
    Synthetic observation table: 10 countries, 5 with median age < 40 and
    5 with median age >= 40. Socio columns are constant per country.
    """
    rng = np.random.default_rng(seed)
    ages = YOUNG_AGES + OLD_AGES
    # interleave so that country order does not follow age order
    order = [0, 5, 1, 6, 2, 7, 3, 8, 4, 9]

    frames = []
    for i, k in enumerate(order):
        age = ages[k]
        young = age < 40
        n = rows_per_country
        frames.append(pd.DataFrame({
            "country": f"C{i:02d}",
            "danceability": rng.uniform(0.55, 0.95, n) if young else rng.uniform(0.2, 0.6, n),
            "energy": rng.uniform(0.3, 1.0, n),
            "key": rng.integers(0, 12, n),
            "loudness": rng.uniform(-12.0, -2.0, n),
            "mode": rng.integers(0, 2, n),
            "speechiness": rng.uniform(0.02, 0.3, n),
            "acousticness": rng.uniform(0.0, 0.4, n) if young else rng.uniform(0.3, 0.9, n),
            "instrumentalness": rng.uniform(0.0, 0.1, n),
            "liveness": rng.uniform(0.05, 0.4, n),
            "valence": rng.uniform(0.1, 0.9, n),
            "tempo": rng.uniform(70.0, 180.0, n),
            "track.explicit": rng.random(n) < (0.6 if young else 0.1),
            "median_age": age,
            "happiness": 4.0 + 0.3 * i,
            "gdp": 1000.0 * (i + 1) ** 1.5,
            "freedom": 0.9 - 0.05 * k,
        }))
    df = pd.concat(frames, ignore_index=True)
    return df[["country", *MUSIC_FEATURES, *SOCIO_FEATURES]]


@pytest.fixture
def tracks() -> pd.DataFrame:
    return make_tracks()


@pytest.fixture
def young_countries(tracks) -> set:
    ages = tracks.groupby("country")["median_age"].first()
    return set(ages[ages < 40].index)
