import numpy as np
import pandas as pd
import pytest

from socio_music.config import MUSIC_FEATURES, SOCIO_FEATURES, UNSEEN_LABEL
from socio_music.evaluation.metrics import leakage_summary
from socio_music.models.tree import PrunedTreeClassifier
from socio_music.splits import stratified_split


def socio_view(tracks):
    return tracks[["country", *SOCIO_FEATURES]]


def test_raw_socio_features_leak_country(tracks):
    socio = socio_view(tracks)
    train, test = stratified_split(socio, "country", 0.8, seed=42).take(socio)

    tree = PrunedTreeClassifier(seed=42).fit(train, "country")
    rep = tree.evaluate(test)

    assert leakage_summary(train, test, "country")["all_shared"]
    assert rep.error_rate == 0.0
    assert rep.n == len(test)


def test_importance_ranked_over_feature_columns(tracks):
    socio = socio_view(tracks)
    imp = PrunedTreeClassifier(seed=0).fit(socio, "country").feature_importance()
    assert set(imp.index) == set(SOCIO_FEATURES)
    assert imp.is_monotonic_decreasing
    assert imp.sum() == pytest.approx(1.0)


def test_fit_is_deterministic(tracks):
    music = tracks[["country", *MUSIC_FEATURES]]
    a = PrunedTreeClassifier(seed=3, cv_folds=5).fit(music, "country")
    b = PrunedTreeClassifier(seed=3, cv_folds=5).fit(music, "country")
    assert a.ccp_alpha_ == b.ccp_alpha_
    np.testing.assert_array_equal(a.predict(music), b.predict(music))
    pd.testing.assert_series_equal(a.feature_importance(), b.feature_importance())


def test_one_se_rule_prunes_at_least_as_much_as_min(tracks):
    music = tracks[["country", *MUSIC_FEATURES]]
    one_se = PrunedTreeClassifier(seed=1, cv_folds=5, prune_rule="1se").fit(music, "country")
    best = PrunedTreeClassifier(seed=1, cv_folds=5, prune_rule="min").fit(music, "country")
    assert one_se.ccp_alpha_ >= best.ccp_alpha_
    assert one_se.tree_.get_n_leaves() <= best.tree_.get_n_leaves()
    assert list(one_se.cp_table_.columns) == ["alpha", "xerror", "xstd"]


def test_unseen_category_counts_as_misclassified():
    rng = np.random.default_rng(0)
    train = pd.DataFrame({
        "genre": ["a"] * 10 + ["b"] * 10,
        "noise": rng.normal(size=20),
        "label": ["X"] * 10 + ["Y"] * 10,
    })
    test = pd.DataFrame({"genre": ["a", "c"], "noise": [0.0, 0.0], "label": ["X", "X"]})

    tree = PrunedTreeClassifier(seed=0).fit(train, "label")
    assert tree.predict(test).tolist() == ["X", UNSEEN_LABEL]

    rep = tree.evaluate(test)
    assert rep.n_unseen == 1
    assert rep.error_rate == pytest.approx(0.5)


def test_unknown_prune_rule():
    df = pd.DataFrame({"x": [0, 1, 2, 3] * 3, "y": list("aabb") * 3})
    with pytest.raises(ValueError, match="prune_rule"):
        PrunedTreeClassifier(prune_rule="median").fit(df, "y")


def test_predict_before_fit():
    with pytest.raises(RuntimeError):
        PrunedTreeClassifier().predict(pd.DataFrame({"x": [1]}))


def cp_table():
    return pd.DataFrame({
        "alpha": [0.0, 0.01, 0.02, 0.05],
        "xerror": [0.375, 0.25, 0.3125, 0.5],
        "xstd": [0.0625, 0.125, 0.0625, 0.125],
    })


def test_one_se_rule_on_fixed_table():
    # min 0.25 at alpha=0.01, + 1 SE (0.125) -> 0.375: alpha 0.02 is the largest within
    assert PrunedTreeClassifier(prune_rule="1se")._select_alpha(cp_table()) == 0.02


def test_min_rule_on_fixed_table():
    assert PrunedTreeClassifier(prune_rule="min")._select_alpha(cp_table()) == 0.01


def test_one_se_rule_boundary_is_inclusive():
    cp = cp_table()
    cp.loc[3, "xerror"] = 0.375
    assert PrunedTreeClassifier(prune_rule="1se")._select_alpha(cp) == 0.05


def test_no_cv_errors_keeps_full_tree():
    cp = pd.DataFrame({"alpha": [0.0, 0.3], "xerror": np.nan, "xstd": np.nan})
    assert PrunedTreeClassifier()._select_alpha(cp) == 0.0
