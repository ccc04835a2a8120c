from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..data.loader import require_columns
from ..errors import ClusteringError
from ..kmeans import make_kmeans

logger = logging.getLogger(__name__)

"""
Task: Länder-Clustering (Unüberwacht) über ein Aggregat pro Land.

Logik:
- Mittelwert einer Spalte pro Land (z.B. median_age)
- KMeans auf dieser einen Dimension
- Cluster-Indizes sind willkürlich -> Umbenennung nach Zentroid:
  kleinster Zentroid -> erstes Label ("young"), größter -> letztes ("old")
- Label wird auf jede Zeile des Landes zurückgeschrieben (neue Tabelle)
"""


@dataclass
class GroupAggregateClusterer:
    cluster_count: int = 2
    seed: int = 42
    labels: Sequence[str] = ("young", "old")
    label_col: str = "age_group"

    group_col_: Optional[str] = field(default=None, init=False)
    value_col_: Optional[str] = field(default=None, init=False)
    aggregate_: Optional[pd.Series] = field(default=None, init=False, repr=False)
    group_labels_: Optional[pd.Series] = field(default=None, init=False, repr=False)
    centroids_: Optional[pd.Series] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.cluster_count < 2:
            raise ClusteringError(f"cluster_count must be >= 2, got {self.cluster_count}")
        if len(self.labels) != self.cluster_count:
            raise ClusteringError(
                f"Got {len(self.labels)} label(s) for cluster_count={self.cluster_count}; "
                "need exactly one label per cluster",
                parameter="labels",
            )

    def fit(self, df: pd.DataFrame, value_col: str, group_col: str = "country") -> "GroupAggregateClusterer":
        require_columns(df, [group_col, value_col], where="clustering table")
        agg = (
            pd.to_numeric(df[value_col], errors="coerce")
            .groupby(df[group_col])
            .mean()
            .dropna()
        )
        if len(agg) < self.cluster_count:
            raise ClusteringError(
                f"cluster_count={self.cluster_count} exceeds the {len(agg)} group(s) "
                f"in '{group_col}' with a value for '{value_col}'"
            )
        n_distinct = agg.nunique()
        if n_distinct < self.cluster_count:
            raise ClusteringError(
                f"cluster_count={self.cluster_count} exceeds the {n_distinct} distinct "
                f"per-{group_col} value(s) of '{value_col}'"
            )

        km = make_kmeans(self.cluster_count, random_state=self.seed)
        raw = km.fit_predict(agg.to_numpy().reshape(-1, 1))
        centers = km.cluster_centers_.ravel()

        # rank clusters by centroid, not by KMeans numbering
        order = np.argsort(centers, kind="mergesort")
        index_to_label = {int(k): self.labels[rank] for rank, k in enumerate(order)}

        self.group_col_, self.value_col_ = group_col, value_col
        self.aggregate_ = agg.rename(f"mean_{value_col}")
        self.group_labels_ = pd.Series(
            [index_to_label[int(k)] for k in raw], index=agg.index, name=self.label_col
        )
        self.centroids_ = pd.Series(
            [float(centers[k]) for k in order], index=list(self.labels), name="centroid"
        )
        logger.info(
            "Clustered %d group(s) on mean %s: %s",
            len(agg), value_col, ", ".join(f"{l}={c:.2f}" for l, c in self.centroids_.items()),
        )
        return self

    def _check_fitted(self):
        if self.group_labels_ is None:
            raise RuntimeError("GroupAggregateClusterer is not fitted yet.")

    def assign(self, df: pd.DataFrame) -> pd.DataFrame:
        """Neue Tabelle mit Cluster-Label je Zeile (über die Gruppe)."""
        self._check_fitted()
        require_columns(df, [self.group_col_], where="rows to label")
        out = df.copy()
        out[self.label_col] = out[self.group_col_].map(self.group_labels_)
        unknown = out.loc[out[self.label_col].isna(), self.group_col_].unique()
        if len(unknown):
            raise ClusteringError(
                f"No cluster for group(s): {', '.join(map(str, unknown))}", parameter=self.group_col_
            )
        return out

    def summary(self) -> pd.DataFrame:
        self._check_fitted()
        frame = pd.concat([self.aggregate_, self.group_labels_], axis=1)
        out = frame.groupby(self.label_col)[self.aggregate_.name].agg(["count", "mean", "min", "max"])
        return out.reindex(list(self.labels)).rename(columns={"count": "n_groups"})


def cluster_groups(df: pd.DataFrame, value_col: str, group_col: str = "country", cluster_count: int = 2,
                   seed: int = 42, labels: Tuple[str, ...] = ("young", "old"),
                   label_col: str = "age_group") -> Tuple[pd.DataFrame, GroupAggregateClusterer]:
    clusterer = GroupAggregateClusterer(
        cluster_count=cluster_count, seed=seed, labels=labels, label_col=label_col
    ).fit(df, value_col=value_col, group_col=group_col)
    return clusterer.assign(df), clusterer
