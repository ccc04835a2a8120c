from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from .errors import PartitionError, SchemaError

"""
Splitting-Strategien (Train/Test).

Enthält:
- Stratifizierter Split auf einer Label-Spalte (Label-Verteilung bleibt erhalten)
- Einfacher uniformer Zufalls-Split ohne Stratifizierung

Wichtig:
Splits müssen reproduzierbar sein -> Seed wird immer explizit übergeben.
Die Splits sind positionsbasiert (iloc) und disjunkt.
"""


@dataclass(frozen=True)
class Partition:
    """Disjoint positional row indices of one train/test split."""
    train_idx: np.ndarray
    test_idx: np.ndarray

    @property
    def train_fraction(self) -> float:
        n = len(self.train_idx) + len(self.test_idx)
        return len(self.train_idx) / n if n else 0.0

    def take(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame]:
        return df.iloc[self.train_idx], df.iloc[self.test_idx]


def _sizes(n: int, train_fraction: float) -> Tuple[int, int]:
    if not 0.0 < train_fraction < 1.0:
        raise PartitionError(f"train_fraction must be in (0, 1), got {train_fraction}")
    n_train = int(np.floor(train_fraction * n))
    n_test = n - n_train
    if n_train == 0 or n_test == 0:
        raise PartitionError(
            f"train_fraction={train_fraction} on {n} rows gives train={n_train}, test={n_test}; "
            "both partitions must be non-empty"
        )
    return n_train, n_test


def stratified_split(df: pd.DataFrame, label_col: str, train_fraction: float = 0.8,
                     seed: int = 42) -> Partition:
    """
    Zweck:
    - Stratifizierter Train/Test-Split auf `label_col`.

    Logik:
    - |train| = floor(train_fraction * n), Rest -> Test
    - jede Label-Ausprägung ist in beiden Partitionen vertreten

    Raises:
        SchemaError: label_col fehlt.
        PartitionError: Label fehlt (NaN), ein Stratum hat < 2 Zeilen, oder
            eine Partition hätte weniger Zeilen als es Labels gibt.
    """
    if label_col not in df.columns:
        raise SchemaError([label_col], where="stratified split")

    labels = df[label_col]
    if labels.isna().any():
        raise PartitionError(f"{int(labels.isna().sum())} rows have no value in '{label_col}'", label_col)

    n = len(df)
    n_train, n_test = _sizes(n, train_fraction)

    counts = labels.value_counts()
    small = counts[counts < 2]
    if not small.empty:
        raise PartitionError(
            f"Stratum/strata with fewer than 2 rows in '{label_col}': "
            f"{', '.join(map(str, small.index))} (need >= 2 per stratum)",
            label_col,
        )
    n_classes = len(counts)
    if n_train < n_classes or n_test < n_classes:
        raise PartitionError(
            f"train_fraction={train_fraction} gives train={n_train}, test={n_test} rows "
            f"for {n_classes} strata in '{label_col}' (need >= {n_classes} rows per partition)",
            label_col,
        )

    idx_tr, idx_te = train_test_split(
        np.arange(n),
        train_size=n_train,
        test_size=n_test,
        stratify=labels.to_numpy(),
        random_state=seed,
        shuffle=True,
    )
    return Partition(train_idx=np.sort(idx_tr), test_idx=np.sort(idx_te))


def random_split(df: pd.DataFrame, train_fraction: float = 0.8, seed: int = 42) -> Partition:
    """Uniform random split without stratification."""
    n = len(df)
    n_train, n_test = _sizes(n, train_fraction)
    idx_tr, idx_te = train_test_split(
        np.arange(n), train_size=n_train, test_size=n_test, random_state=seed, shuffle=True
    )
    return Partition(train_idx=np.sort(idx_tr), test_idx=np.sort(idx_te))


def split(df: pd.DataFrame, train_fraction: float = 0.8, seed: int = 42,
          label_col: Optional[str] = None) -> Partition:
    if label_col is None:
        return random_split(df, train_fraction=train_fraction, seed=seed)
    return stratified_split(df, label_col, train_fraction=train_fraction, seed=seed)
