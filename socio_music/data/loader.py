from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

import pandas as pd

from ..errors import SchemaError

logger = logging.getLogger(__name__)


def require_columns(df: pd.DataFrame, columns: Iterable[str], where: str = "input table") -> None:
    """Raise SchemaError listing every required column absent from df."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(missing, where=where)


class DatasetLoader:
    """
    Reads the track/country observation table from a delimited file.

    No schema validation beyond the required columns: a missing column is a
    configuration error and aborts the run.
    """

    def __init__(self, data_path, sep: str = ",", required: Iterable[str] = ()):
        self.data_path = Path(data_path)
        self.sep = sep
        self.required: List[str] = list(required)

    def get_data(self) -> pd.DataFrame:
        logger.info("Reading data from %s", self.data_path)
        data = pd.read_csv(self.data_path, sep=self.sep)
        logger.info("Data shape: %s", data.shape)
        require_columns(data, self.required, where=str(self.data_path))
        return data


def load_dataset(data_path, country_col: str, music_features, socio_features, sep: str = ",") -> pd.DataFrame:
    required = [country_col, *music_features, *socio_features]
    try:
        return DatasetLoader(data_path, sep=sep, required=required).get_data()
    except Exception as e:
        logger.error("Error ingesting data: %s", e)
        raise
