from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.inspection import permutation_importance

from ..config import UNSEEN_LABEL
from ..data.loader import require_columns
from ..evaluation.metrics import ClassificationReport, classification_report
from ..features.encoding import TreeFeatureEncoder

logger = logging.getLogger(__name__)

"""
Task: Random Forest als Vergleich zum gepruneten Baum.

- Bootstrap-Ziehung pro Baum, zufällige Feature-Teilmenge pro Split
- Mehrheitsentscheid über alle Bäume
- Confusion-Matrix aus Out-of-Bag-Vorhersagen (kein Test-Set nötig)
- Permutation-Importance: Accuracy-Verlust, wenn ein Feature permutiert wird
"""


@dataclass
class RandomForestComparison:
    seed: int = 42
    n_estimators: int = 500
    max_features: str = "sqrt"
    n_repeats: int = 10

    model_: Optional[RandomForestClassifier] = field(default=None, init=False, repr=False)
    encoder_: Optional[TreeFeatureEncoder] = field(default=None, init=False, repr=False)
    label_col_: Optional[str] = field(default=None, init=False)
    oob_report_: Optional[ClassificationReport] = field(default=None, init=False, repr=False)
    _train: Optional[pd.DataFrame] = field(default=None, init=False, repr=False)

    def fit(self, df: pd.DataFrame, label_col: str) -> "RandomForestComparison":
        require_columns(df, [label_col], where="forest training table")
        X = df.drop(columns=[label_col])
        if X.shape[1] == 0:
            raise ValueError("No feature columns left besides the label column.")
        y = df[label_col].to_numpy(dtype=object)

        self.encoder_ = TreeFeatureEncoder()
        Xe, _ = self.encoder_.fit_transform(X)

        self.model_ = RandomForestClassifier(
            n_estimators=self.n_estimators,
            max_features=self.max_features,
            bootstrap=True,
            oob_score=True,
            random_state=self.seed,
        )
        self.model_.fit(Xe, y)
        self.label_col_ = label_col
        self._train = df
        self.oob_report_ = self._oob_report(y)

        logger.info(
            "Random forest for '%s': %d trees, OOB error=%.4f",
            label_col, self.n_estimators, self.oob_report_.error_rate,
        )
        return self

    def _oob_report(self, y: np.ndarray) -> ClassificationReport:
        proba = self.model_.oob_decision_function_
        # rows that were in-bag for every tree get an all-zero row, no OOB vote
        valid = proba.sum(axis=1) > 0
        if not valid.all():
            logger.warning("%d row(s) without OOB prediction excluded", int((~valid).sum()))
        pred = self.model_.classes_[np.argmax(proba[valid], axis=1)]
        labels = sorted(set(self.model_.classes_.tolist()), key=str)
        return classification_report(y[valid], pred, labels=labels)

    def _check_fitted(self):
        if self.model_ is None or self.encoder_ is None:
            raise RuntimeError("RandomForestComparison is not fitted yet.")

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        self._check_fitted()
        X = df.drop(columns=[self.label_col_], errors="ignore")
        Xe, unseen = self.encoder_.transform(X)
        pred = self.model_.predict(Xe).astype(object)
        pred[unseen] = UNSEEN_LABEL
        return pred

    def evaluate(self, df: pd.DataFrame) -> ClassificationReport:
        self._check_fitted()
        require_columns(df, [self.label_col_], where="forest evaluation table")
        pred = self.predict(df)
        n_unseen = int(np.sum(pred == UNSEEN_LABEL))
        return classification_report(df[self.label_col_].to_numpy(dtype=object), pred, n_unseen=n_unseen)

    def feature_importance(self, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        """
        Zweck:
        - Permutation-Importance: mittlerer Accuracy-Verlust pro permutiertem Feature.

        Parameter:
        - df: Tabelle mit Label-Spalte (z.B. Test-Partition). Default: Trainingsdaten.

        Rückgabe:
        - DataFrame (feature-Index) mit mean_decrease_accuracy, std und
          mean_decrease_impurity, absteigend nach mean_decrease_accuracy.
        """
        self._check_fitted()
        df = self._train if df is None else df
        Xe, _ = self.encoder_.transform(df.drop(columns=[self.label_col_]))
        y = df[self.label_col_].to_numpy(dtype=object)
        perm = permutation_importance(
            self.model_, Xe, y,
            scoring="accuracy",
            n_repeats=self.n_repeats,
            random_state=self.seed,
        )
        out = pd.DataFrame({
            "mean_decrease_accuracy": perm.importances_mean,
            "std": perm.importances_std,
            "mean_decrease_impurity": self.model_.feature_importances_,
        }, index=pd.Index(self.encoder_.columns_, name="feature"))
        return out.sort_values("mean_decrease_accuracy", ascending=False, kind="mergesort")
