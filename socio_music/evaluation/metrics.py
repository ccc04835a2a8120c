from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix

"""
Metriken für die Klassifikations-Schritte.

Enthält:
- Confusion-Matrix (Zeilen = Vorhersage, Spalten = wahres Label)
- Fehlerrate = 1 - Diagonale / Gesamt
- Gruppen-Überlappung zwischen Train und Test (Leakage-Check)

Hinweis:
Metrics sind zentralisiert, damit Baum und Random Forest gleich berichten.
"""


@dataclass
class ClassificationReport:
    """
    Ergebnis einer Evaluation.

    Attributes
    ----------
    confusion:
        DataFrame, Index = vorhergesagtes Label, Spalten = wahres Label.
    error_rate:
        1 - korrekt / gesamt, immer in [0, 1].
    n:
        Anzahl bewerteter Zeilen.
    n_unseen:
        Zeilen mit unbekannter Kategorie (als falsch gezählt).
    """
    confusion: pd.DataFrame
    error_rate: float
    n: int
    n_unseen: int = 0

    @property
    def accuracy(self) -> float:
        return 1.0 - self.error_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labels_pred": [str(i) for i in self.confusion.index],
            "labels_true": [str(c) for c in self.confusion.columns],
            "confusion_matrix": self.confusion.to_numpy().tolist(),
            "error_rate": float(self.error_rate),
            "n": int(self.n),
            "n_unseen": int(self.n_unseen),
        }


def confusion_table(y_true, y_pred, labels: Optional[Sequence] = None) -> pd.DataFrame:
    """
    Zweck:
    - Confusion-Matrix als DataFrame, vorhergesagt x wahr.

    Details:
    - sklearn liefert wahr x vorhergesagt, deshalb wird transponiert.
    - Labels: Vereinigung aus wahren und vorhergesagten Werten, falls nicht übergeben.
    """
    y_true = np.asarray(y_true, dtype=object)
    y_pred = np.asarray(y_pred, dtype=object)
    if labels is None:
        labels = sorted(set(y_true.tolist()) | set(y_pred.tolist()), key=str)
    labels = list(labels)
    cm = confusion_matrix(y_true, y_pred, labels=labels).T
    return pd.DataFrame(
        cm,
        index=pd.Index(labels, name="predicted"),
        columns=pd.Index(labels, name="true"),
    )


def error_rate(confusion: pd.DataFrame) -> float:
    """1 - sum(diagonal) / total; diagonal matched by label, not by position."""
    total = int(confusion.to_numpy().sum())
    if total == 0:
        return 0.0
    common = [l for l in confusion.index if l in confusion.columns]
    correct = int(sum(confusion.loc[l, l] for l in common))
    return 1.0 - correct / total


def classification_report(y_true, y_pred, n_unseen: int = 0,
                          labels: Optional[Sequence] = None) -> ClassificationReport:
    cm = confusion_table(y_true, y_pred, labels=labels)
    return ClassificationReport(confusion=cm, error_rate=error_rate(cm), n=len(y_true), n_unseen=n_unseen)


def group_overlap(train: pd.DataFrame, test: pd.DataFrame, group_col: str) -> List[Any]:
    """
    Gruppen (z.B. Länder), die in beiden Partitionen vorkommen.

    Hat ein Feature einen konstanten Wert pro Gruppe, sieht das Modell im
    Training genau den Wert, der im Test das Label verrät.
    """
    both = set(train[group_col].dropna().unique()) & set(test[group_col].dropna().unique())
    return sorted(both, key=str)


def leakage_summary(train: pd.DataFrame, test: pd.DataFrame, group_col: str) -> Dict[str, Any]:
    shared = group_overlap(train, test, group_col)
    n_groups = len(set(train[group_col].dropna().unique()) | set(test[group_col].dropna().unique()))
    return {
        "group_col": group_col,
        "n_groups": int(n_groups),
        "n_shared": len(shared),
        "shared_groups": [str(g) for g in shared],
        "all_shared": bool(n_groups > 0 and len(shared) == n_groups),
    }
