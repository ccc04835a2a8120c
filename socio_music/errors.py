from __future__ import annotations

from typing import Iterable

"""
Fehlerklassen der Pipeline.

Alle sind ValueError-Unterklassen: ein Fehler ist immer ein Konfigurations-
oder Datenproblem, nie ein transienter Fehler. Retry gibt es nicht.
"""


class SchemaError(ValueError):
    """A required column is missing from the input table."""

    def __init__(self, missing: Iterable[str], where: str = "input table"):
        self.missing = list(missing)
        self.where = where
        super().__init__(
            f"Missing required column(s) in {where}: {', '.join(self.missing)}"
        )


class PartitionError(ValueError):
    """Requested split cannot be drawn (stratum too small, empty partition)."""

    def __init__(self, message: str, label_col: str | None = None):
        self.label_col = label_col
        super().__init__(message)


class ClusteringError(ValueError):
    """Degenerate clustering request, e.g. more clusters than groups."""

    def __init__(self, message: str, parameter: str = "cluster_count"):
        self.parameter = parameter
        super().__init__(message)
