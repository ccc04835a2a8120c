import numpy as np
import pandas as pd
import pytest

from socio_music.config import MUSIC_FEATURES, UNSEEN_LABEL
from socio_music.models.age_clustering import cluster_groups
from socio_music.models.forest import RandomForestComparison
from socio_music.splits import stratified_split


@pytest.fixture
def music(tracks):
    labeled, _ = cluster_groups(tracks, "median_age")
    return labeled[[*MUSIC_FEATURES, "age_group"]]


def test_oob_report(music):
    forest = RandomForestComparison(seed=0, n_estimators=60).fit(music, "age_group")
    rep = forest.oob_report_
    assert set(rep.confusion.index) == {"young", "old"}
    assert 0.0 <= rep.error_rate <= 1.0
    assert rep.n <= len(music)
    # music features carry the age signal in the fixture
    assert rep.error_rate < 0.3


def test_test_report_and_permutation_importance(music):
    train, test = stratified_split(music, "age_group", 0.8, seed=0).take(music)
    forest = RandomForestComparison(seed=0, n_estimators=60, n_repeats=3).fit(train, "age_group")

    rep = forest.evaluate(test)
    assert rep.n == len(test)
    assert rep.confusion.to_numpy().sum() == len(test)

    imp = forest.feature_importance(test)
    assert set(imp.index) == set(MUSIC_FEATURES)
    assert list(imp.columns) == ["mean_decrease_accuracy", "std", "mean_decrease_impurity"]
    assert imp["mean_decrease_accuracy"].is_monotonic_decreasing
    assert imp["mean_decrease_impurity"].idxmax() in {"danceability", "acousticness", "track.explicit"}


def test_forest_is_deterministic(music):
    a = RandomForestComparison(seed=4, n_estimators=30).fit(music, "age_group")
    b = RandomForestComparison(seed=4, n_estimators=30).fit(music, "age_group")
    np.testing.assert_array_equal(a.predict(music), b.predict(music))
    assert a.oob_report_.error_rate == b.oob_report_.error_rate


def test_unseen_category_in_forest():
    train = pd.DataFrame({"genre": ["a", "b"] * 10, "label": ["X", "Y"] * 10})
    forest = RandomForestComparison(seed=0, n_estimators=20).fit(train, "label")
    rep = forest.evaluate(pd.DataFrame({"genre": ["a", "z"], "label": ["X", "Y"]}))
    assert forest.predict(pd.DataFrame({"genre": ["z"]})).tolist() == [UNSEEN_LABEL]
    assert rep.n_unseen == 1
    assert rep.error_rate == pytest.approx(0.5)


def test_oob_report_counts_only_rows_with_a_vote(music):
    # 3 trees: roughly a quarter of the rows are in-bag for every tree
    with pytest.warns(UserWarning):
        forest = RandomForestComparison(seed=0, n_estimators=3).fit(music, "age_group")
    no_vote = int((forest.model_.oob_decision_function_.sum(axis=1) == 0).sum())

    assert no_vote > 0
    assert forest.oob_report_.n == len(music) - no_vote
    assert forest.oob_report_.confusion.to_numpy().sum() == len(music) - no_vote
