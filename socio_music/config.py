# socio_music/config.py
from typing import List, Tuple

RANDOM_SEED = 42

# Split / binning / clustering defaults
TRAIN_FRACTION = 0.80
BIN_COUNT = 4
CLUSTER_COUNT = 2

COUNTRY_COL = "country"

# Audio features per track (Spotify API names)
MUSIC_FEATURES: List[str] = [
    "danceability", "energy", "key", "loudness", "mode",
    "speechiness", "acousticness", "instrumentalness",
    "liveness", "valence", "tempo", "track.explicit",
]

# Socio-political indicators, one value per country repeated on every row
SOCIO_FEATURES: List[str] = [
    "median_age", "happiness", "gdp", "freedom",
]

AGE_FEATURE = "median_age"

# Semantic names for the age clusters, ordered by ascending centroid
CLUSTER_LABELS: Tuple[str, ...] = ("young", "old")

# Tree pruning
CV_FOLDS = 10
PRUNE_RULE = "1se"

# Forest
N_ESTIMATORS = 500

UNSEEN_LABEL = "<unseen>"
