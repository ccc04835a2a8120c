from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold, StratifiedKFold
from sklearn.tree import DecisionTreeClassifier

from ..config import UNSEEN_LABEL
from ..data.loader import require_columns
from ..evaluation.metrics import ClassificationReport, classification_report
from ..features.encoding import TreeFeatureEncoder

logger = logging.getLogger(__name__)

"""
Task: Entscheidungsbaum mit Cost-Complexity-Pruning.

Pruning-Strategie:
------------------
- Pruning-Pfad (ccp_alpha-Kandidaten) auf den Trainingsdaten
- k-fold CV-Fehler + Standardfehler je Kandidat
- "1se": einfachster Baum, dessen CV-Fehler <= min + 1 SE ist
- "min": Baum mit minimalem CV-Fehler

Ausgabe:
- gefitteter Baum (Vorhersage auf neuen Zeilen mit gleichem Schema)
- Feature-Importance (Impurity-Reduktion), absteigend sortiert
- Confusion-Matrix + Fehlerrate über ClassificationReport

Unbekannte Kategorien:
Zeilen mit einer im Training nie gesehenen Kategorie bekommen das Label
UNSEEN_LABEL und zählen damit als falsch klassifiziert.
"""


@dataclass
class PrunedTreeClassifier:
    seed: int = 42
    cv_folds: int = 10
    prune_rule: str = "1se"
    criterion: str = "gini"
    max_alphas: int = 30

    tree_: Optional[DecisionTreeClassifier] = field(default=None, init=False, repr=False)
    encoder_: Optional[TreeFeatureEncoder] = field(default=None, init=False, repr=False)
    cp_table_: Optional[pd.DataFrame] = field(default=None, init=False, repr=False)
    ccp_alpha_: float = field(default=0.0, init=False)
    label_col_: Optional[str] = field(default=None, init=False)

    def _tree(self, ccp_alpha: float = 0.0) -> DecisionTreeClassifier:
        return DecisionTreeClassifier(
            criterion=self.criterion,
            ccp_alpha=ccp_alpha,
            random_state=self.seed,
        )

    def _candidate_alphas(self, X: pd.DataFrame, y: np.ndarray) -> np.ndarray:
        path = self._tree().cost_complexity_pruning_path(X, y)
        alphas = np.unique(np.clip(path.ccp_alphas, 0.0, None))
        if len(alphas) > self.max_alphas:
            # keep both ends of the path, thin out the middle
            pick = np.unique(np.linspace(0, len(alphas) - 1, self.max_alphas).round().astype(int))
            alphas = alphas[pick]
        return alphas

    def _cv_splitter(self, y: np.ndarray):
        _, counts = np.unique(y, return_counts=True)
        min_count = int(counts.min())
        if min_count >= 2:
            return StratifiedKFold(n_splits=min(self.cv_folds, min_count), shuffle=True, random_state=self.seed)
        if len(y) >= 2:
            return KFold(n_splits=min(self.cv_folds, len(y)), shuffle=True, random_state=self.seed)
        return None

    def _cp_table(self, X: pd.DataFrame, y: np.ndarray, alphas: np.ndarray) -> pd.DataFrame:
        cv = self._cv_splitter(y)
        if cv is None or len(alphas) == 1:
            return pd.DataFrame({"alpha": alphas, "xerror": np.nan, "xstd": np.nan})

        errors = np.zeros((cv.get_n_splits(), len(alphas)))
        for i, (tr, va) in enumerate(cv.split(X, y)):
            for j, a in enumerate(alphas):
                m = self._tree(a).fit(X.iloc[tr], y[tr])
                errors[i, j] = float(np.mean(m.predict(X.iloc[va]) != y[va]))

        n_folds = errors.shape[0]
        return pd.DataFrame({
            "alpha": alphas,
            "xerror": errors.mean(axis=0),
            "xstd": errors.std(axis=0, ddof=1) / np.sqrt(n_folds),
        })

    def _select_alpha(self, cp: pd.DataFrame) -> float:
        if cp["xerror"].isna().all():
            return 0.0
        best = cp["xerror"].min()
        if self.prune_rule == "min":
            ok = cp[cp["xerror"] <= best]
        elif self.prune_rule == "1se":
            se = cp.loc[cp["xerror"] <= best, "xstd"].max()
            ok = cp[cp["xerror"] <= best + se]
        else:
            raise ValueError(f"Unknown prune_rule '{self.prune_rule}' (expected '1se' or 'min')")
        # larger alpha -> smaller tree
        return float(ok["alpha"].max())

    def fit(self, df: pd.DataFrame, label_col: str) -> "PrunedTreeClassifier":
        require_columns(df, [label_col], where="tree training table")
        X = df.drop(columns=[label_col])
        if X.shape[1] == 0:
            raise ValueError("No feature columns left besides the label column.")
        y = df[label_col].to_numpy(dtype=object)

        self.encoder_ = TreeFeatureEncoder()
        Xe, _ = self.encoder_.fit_transform(X)

        alphas = self._candidate_alphas(Xe, y)
        self.cp_table_ = self._cp_table(Xe, y, alphas)
        self.ccp_alpha_ = self._select_alpha(self.cp_table_)
        self.tree_ = self._tree(self.ccp_alpha_).fit(Xe, y)
        self.label_col_ = label_col

        logger.info(
            "Tree for '%s': %d rows, %d features, ccp_alpha=%.5f (%s), %d leaves",
            label_col, len(df), X.shape[1], self.ccp_alpha_, self.prune_rule, self.tree_.get_n_leaves(),
        )
        return self

    def _check_fitted(self):
        if self.tree_ is None or self.encoder_ is None:
            raise RuntimeError("PrunedTreeClassifier is not fitted yet.")

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        self._check_fitted()
        X = df.drop(columns=[self.label_col_], errors="ignore")
        Xe, unseen = self.encoder_.transform(X)
        pred = self.tree_.predict(Xe).astype(object)
        if unseen.any():
            logger.warning("%d row(s) with unseen categories counted as misclassified", int(unseen.sum()))
            pred[unseen] = UNSEEN_LABEL
        return pred

    def evaluate(self, df: pd.DataFrame) -> ClassificationReport:
        self._check_fitted()
        require_columns(df, [self.label_col_], where="tree evaluation table")
        X = df.drop(columns=[self.label_col_])
        _, unseen = self.encoder_.transform(X)
        pred = self.predict(df)
        return classification_report(df[self.label_col_].to_numpy(dtype=object), pred, n_unseen=int(unseen.sum()))

    def feature_importance(self) -> pd.Series:
        self._check_fitted()
        imp = pd.Series(self.tree_.feature_importances_, index=self.encoder_.columns_, name="importance")
        return imp.sort_values(ascending=False, kind="mergesort")
