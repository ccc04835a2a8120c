from __future__ import annotations

from typing import Dict, List, Optional

import pandas as pd

from .loader import require_columns


def calculate_percentage(part: int, whole: int) -> float:
    """Calculate percentage with proper handling of zero division."""
    return 0.0 if whole == 0 else round(100.0 * part / whole, 3)


class CountryConstancyChecker:
    """
    Checks the per-country invariant of the observation table:
    every socio-political column holds exactly one value per country.

    Each check adds one result row (column, status, n_bad, n_total, pct_bad),
    "warn" rows name countries where the column varies.
    """

    def __init__(self, country_col: str = "country"):
        self.country_col = country_col
        self.results: List[Dict] = []

    def add_result(self, column: str, status: str, n_bad: Optional[int],
                   n_total: Optional[int], countries: Optional[List[str]] = None) -> None:
        self.results.append({
            "column": column,
            "status": status,
            "n_bad": int(n_bad) if n_bad is not None else None,
            "n_total": int(n_total) if n_total is not None else None,
            "pct_bad": calculate_percentage(n_bad, n_total)
            if (n_bad is not None and n_total) else None,
            "countries": countries or [],
        })

    def check_column(self, df: pd.DataFrame, column: str) -> None:
        """Count countries where `column` takes more than one value."""
        if column not in df.columns:
            self.add_result(column, "skip", None, None)
            return

        # dropna=False: a NaN next to a value counts as a second value
        n_values = df.groupby(self.country_col)[column].nunique(dropna=False)
        bad = n_values[n_values > 1]
        status = "ok" if bad.empty else "warn"
        self.add_result(column, status, len(bad), len(n_values), [str(c) for c in bad.index])

    def run(self, df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
        require_columns(df, [self.country_col], where="constancy check")
        self.results = []
        for c in columns:
            self.check_column(df, c)
        return pd.DataFrame(self.results)


def check_country_constancy(df: pd.DataFrame, columns: List[str], country_col: str = "country") -> pd.DataFrame:
    return CountryConstancyChecker(country_col=country_col).run(df, columns)
