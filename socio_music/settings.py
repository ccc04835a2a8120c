# socio_music/settings.py
from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from .config import (
    AGE_FEATURE,
    BIN_COUNT,
    CLUSTER_COUNT,
    CLUSTER_LABELS,
    COUNTRY_COL,
    CV_FOLDS,
    MUSIC_FEATURES,
    N_ESTIMATORS,
    PRUNE_RULE,
    RANDOM_SEED,
    SOCIO_FEATURES,
    TRAIN_FRACTION,
)


class RunConfig(BaseModel):
    """
    Parameter eines Pipeline-Laufs.

    Die Defaults kommen aus config.py; hier werden sie validiert, damit ein
    ungültiger Wert (z.B. train_fraction=1.0) sofort mit Feldnamen auffällt
    und nicht erst tief in sklearn.
    """
    train_fraction: float = Field(TRAIN_FRACTION, gt=0.0, lt=1.0)
    bin_count: int = Field(BIN_COUNT, ge=2)
    cluster_count: int = Field(CLUSTER_COUNT, ge=2)
    seed: int = RANDOM_SEED

    country_col: str = COUNTRY_COL
    music_features: List[str] = Field(default_factory=lambda: list(MUSIC_FEATURES))
    socio_features: List[str] = Field(default_factory=lambda: list(SOCIO_FEATURES))

    # None -> most important feature of the discretized socio tree
    cluster_feature: Optional[str] = None
    fallback_cluster_feature: str = AGE_FEATURE
    cluster_labels: Optional[Tuple[str, ...]] = None

    cv_folds: int = Field(CV_FOLDS, ge=2)
    prune_rule: Literal["1se", "min"] = PRUNE_RULE
    n_estimators: int = Field(N_ESTIMATORS, ge=1)

    @model_validator(mode="after")
    def _check_labels(self) -> "RunConfig":
        if self.cluster_labels is not None and len(self.cluster_labels) != self.cluster_count:
            raise ValueError(
                f"cluster_labels has {len(self.cluster_labels)} entries, "
                f"expected cluster_count={self.cluster_count}"
            )
        if not self.music_features:
            raise ValueError("music_features must not be empty")
        if not self.socio_features:
            raise ValueError("socio_features must not be empty")
        return self

    def resolved_cluster_labels(self) -> Tuple[str, ...]:
        if self.cluster_labels is not None:
            return tuple(self.cluster_labels)
        if self.cluster_count == len(CLUSTER_LABELS):
            return CLUSTER_LABELS
        return tuple(f"cluster_{i}" for i in range(1, self.cluster_count + 1))
