import pandas as pd
import pytest

from socio_music.errors import ClusteringError
from socio_music.models.age_clustering import GroupAggregateClusterer, cluster_groups


def test_low_age_countries_are_young(tracks, young_countries):
    labeled, clusterer = cluster_groups(tracks, "median_age", "country", cluster_count=2, seed=42)

    assert set(clusterer.group_labels_[clusterer.group_labels_ == "young"].index) == young_countries
    assert set(clusterer.group_labels_[clusterer.group_labels_ == "old"].index) == (
        set(tracks["country"]) - young_countries
    )
    c = clusterer.centroids_
    assert c["young"] < c["old"]

    # broadcast to every track of the country
    assert len(labeled) == len(tracks)
    per_country = labeled.groupby("country")["age_group"].nunique()
    assert per_country.eq(1).all()


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_labels_follow_centroids_not_kmeans_numbering(seed):
    df = pd.DataFrame({"g": list("abcdef"), "v": [60.0, 10.0, 61.0, 11.0, 59.0, 12.0]})
    clusterer = GroupAggregateClusterer(seed=seed).fit(df, "v", "g")
    assert clusterer.group_labels_.to_dict() == {
        "a": "old", "b": "young", "c": "old", "d": "young", "e": "old", "f": "young",
    }


def test_two_distinct_values_give_two_nonempty_clusters():
    df = pd.DataFrame({"g": ["a", "a", "b"], "v": [1.0, 1.0, 2.0]})
    clusterer = GroupAggregateClusterer().fit(df, "v", "g")
    summary = clusterer.summary()
    assert summary.loc["young", "n_groups"] == 1
    assert summary.loc["old", "n_groups"] == 1
    assert summary.loc["young", "mean"] < summary.loc["old", "mean"]


def test_input_table_not_mutated(tracks):
    before = tracks.copy()
    cluster_groups(tracks, "median_age")
    pd.testing.assert_frame_equal(tracks, before)


def test_more_clusters_than_groups():
    df = pd.DataFrame({"g": ["a", "b"], "v": [1.0, 2.0]})
    with pytest.raises(ClusteringError, match="cluster_count=3"):
        GroupAggregateClusterer(cluster_count=3, labels=("l", "m", "h")).fit(df, "v", "g")


def test_more_clusters_than_distinct_values():
    df = pd.DataFrame({"g": ["a", "b", "c"], "v": [1.0, 1.0, 1.0]})
    with pytest.raises(ClusteringError, match="distinct"):
        GroupAggregateClusterer().fit(df, "v", "g")


def test_label_count_must_match():
    with pytest.raises(ClusteringError, match="one label per cluster"):
        GroupAggregateClusterer(cluster_count=3)


def test_assign_unknown_group():
    df = pd.DataFrame({"g": ["a", "b"], "v": [1.0, 2.0]})
    clusterer = GroupAggregateClusterer().fit(df, "v", "g")
    with pytest.raises(ClusteringError, match="z"):
        clusterer.assign(pd.DataFrame({"g": ["a", "z"]}))
