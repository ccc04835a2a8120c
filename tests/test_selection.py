import pandas as pd
import pytest

from socio_music.config import MUSIC_FEATURES, SOCIO_FEATURES
from socio_music.data.checker import check_country_constancy
from socio_music.data.selection import attach_profile, country_profile, select_features
from socio_music.errors import SchemaError


def test_views_keep_country(tracks):
    views = select_features(tracks, MUSIC_FEATURES, SOCIO_FEATURES)
    assert list(views.music.columns) == ["country", *MUSIC_FEATURES]
    assert list(views.socio.columns) == ["country", *SOCIO_FEATURES]
    assert list(views.music_socio.columns) == ["country", *MUSIC_FEATURES, *SOCIO_FEATURES]
    assert len(views.music) == len(tracks)


def test_missing_column_names_it(tracks):
    with pytest.raises(SchemaError, match="happiness") as exc:
        select_features(tracks.drop(columns=["happiness"]), MUSIC_FEATURES, SOCIO_FEATURES)
    assert exc.value.missing == ["happiness"]


def test_country_profile_one_row_per_country(tracks):
    profile = country_profile(tracks, SOCIO_FEATURES)
    assert len(profile) == tracks["country"].nunique()
    assert list(profile.columns) == SOCIO_FEATURES


def test_attach_profile_restores_rows(tracks):
    profile = country_profile(tracks, SOCIO_FEATURES)
    rows = tracks[["country", *MUSIC_FEATURES]]
    joined = attach_profile(rows, profile)
    pd.testing.assert_frame_equal(joined[tracks.columns], tracks)


def test_attach_profile_unknown_country(tracks):
    profile = country_profile(tracks, SOCIO_FEATURES)
    with pytest.raises(ValueError, match="XX"):
        attach_profile(pd.DataFrame({"country": ["XX"]}), profile)


def test_profile_rejects_varying_values(tracks):
    broken = tracks.copy()
    broken.loc[0, "gdp"] = -1.0
    with pytest.raises(ValueError, match="gdp"):
        country_profile(broken, SOCIO_FEATURES)


def test_constancy_checker(tracks):
    broken = tracks.copy()
    broken.loc[0, "gdp"] = -1.0
    res = check_country_constancy(broken, [*SOCIO_FEATURES, "missing_col"]).set_index("column")
    assert res.loc["gdp", "status"] == "warn"
    assert res.loc["gdp", "countries"] == [broken.loc[0, "country"]]
    assert res.loc["median_age", "status"] == "ok"
    assert res.loc["missing_col", "status"] == "skip"
