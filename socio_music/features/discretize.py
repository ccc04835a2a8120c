from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from ..data.loader import require_columns

logger = logging.getLogger(__name__)

"""
Diskretisierung numerischer Spalten (Equal-Width-Binning).

Jede numerische Spalte wird in `bin_count` gleich breite Intervalle über
[min, max] zerlegt und durch den Bin-Index 1..B ersetzt (geordnete Kategorie).

Hinweis:
Die Schnittpunkte werden einmal auf der vollständigen Tabelle berechnet,
vor dem Train/Test-Split. Für Socio-Features mit einem Wert pro Land
verringert das nur die Auflösung des Leakage-Kanals, es schließt ihn nicht.
"""


def levels_dtype(bin_count: int) -> pd.CategoricalDtype:
    return pd.CategoricalDtype(categories=list(range(1, bin_count + 1)), ordered=True)


def is_discretized(s: pd.Series) -> bool:
    dt = s.dtype
    return isinstance(dt, pd.CategoricalDtype) and bool(dt.ordered)


def is_binnable(s: pd.Series) -> bool:
    # bool is numeric for pandas, but a 2-level flag stays categorical
    return (
        pd.api.types.is_numeric_dtype(s.dtype)
        and not pd.api.types.is_bool_dtype(s.dtype)
        and not is_discretized(s)
    )


def equal_width_edges(s: pd.Series, bin_count: int) -> np.ndarray:
    x = pd.to_numeric(s, errors="coerce").dropna()
    if x.empty:
        raise ValueError(f"Column '{s.name}' has no numeric values to discretize")
    lo, hi = float(x.min()), float(x.max())
    return np.linspace(lo, hi, bin_count + 1)


def apply_edges(s: pd.Series, edges: np.ndarray) -> pd.Series:
    """
    Ordnet jedem Wert seinen Bin 1..B zu, Intervalle rechts geschlossen (a, b].

    - min landet in Bin 1 (include_lowest)
    - Werte außerhalb [min, max] werden auf Bin 1 bzw. B geklemmt
    - konstante Spalte (min == max) -> alles Bin 1
    - NaN bleibt NaN
    """
    bin_count = len(edges) - 1
    x = pd.to_numeric(s, errors="coerce").astype("float64")
    if edges[0] == edges[-1]:
        # pd.cut needs increasing edges
        codes = np.where(x.isna(), -1, 0)
        cat = pd.Categorical.from_codes(codes, dtype=levels_dtype(bin_count))
        return pd.Series(cat, index=s.index, name=s.name)

    binned = pd.cut(
        x.clip(edges[0], edges[-1]),
        bins=edges,
        labels=list(range(1, bin_count + 1)),
        include_lowest=True,
        ordered=True,
    )
    return binned.astype(levels_dtype(bin_count)).rename(s.name)


@dataclass
class EqualWidthDiscretizer:
    """
    Fits equal-width cut points per numeric column and replaces values by
    ordinal levels 1..bin_count.

    Columns that are already discretized (ordered categoricals) and
    non-numeric columns pass through unchanged, so transforming the output
    again returns the same table.
    """
    bin_count: int = 4
    columns: Optional[List[str]] = None
    edges_: Dict[str, np.ndarray] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        if self.bin_count < 2:
            raise ValueError(f"bin_count must be >= 2, got {self.bin_count}")

    def _target_columns(self, df: pd.DataFrame) -> List[str]:
        cols = self.columns if self.columns is not None else list(df.columns)
        require_columns(df, cols, where="discretizer")
        return [c for c in cols if is_binnable(df[c])]

    def fit(self, df: pd.DataFrame) -> "EqualWidthDiscretizer":
        self.edges_ = {c: equal_width_edges(df[c], self.bin_count) for c in self._target_columns(df)}
        logger.info("Discretizer fitted on %d column(s), bin_count=%d", len(self.edges_), self.bin_count)
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        out = df.copy()
        for c, edges in self.edges_.items():
            if c in out.columns and is_binnable(out[c]):
                out[c] = apply_edges(out[c], edges)
        return out

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)


def discretize(df: pd.DataFrame, bin_count: int = 4, columns: Optional[List[str]] = None) -> pd.DataFrame:
    return EqualWidthDiscretizer(bin_count=bin_count, columns=columns).fit_transform(df)
