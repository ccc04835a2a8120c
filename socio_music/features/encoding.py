from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OrdinalEncoder

UNKNOWN_CODE = -1


def is_categorical(s: pd.Series) -> bool:
    dt = s.dtype
    return (
        isinstance(dt, pd.CategoricalDtype)
        or pd.api.types.is_object_dtype(dt)
        or pd.api.types.is_string_dtype(dt)
    )


def is_flag(s: pd.Series) -> bool:
    return pd.api.types.is_bool_dtype(s.dtype) or str(s.dtype) == "boolean"


def as_category_strings(s: pd.Series) -> pd.Series:
    # object + np.nan for SimpleImputer / OrdinalEncoder, values as str
    vals = s.astype("object")
    vals = vals.where(pd.notna(vals), np.nan)
    return vals.where(vals.isna(), vals.astype(str))


def observed_levels(s: pd.Series) -> List[str]:
    """
    Levels seen in `s`, as strings.

    - ordered categorical (discretized): declared order, unused levels dropped
    - everything else: sorted
    """
    seen = set(as_category_strings(s).dropna().tolist())
    if isinstance(s.dtype, pd.CategoricalDtype) and s.dtype.ordered:
        return [str(v) for v in s.dtype.categories if str(v) in seen]
    return sorted(seen)


@dataclass
class TreeFeatureEncoder:
    """
    Turns a mixed feature table into a float matrix for sklearn trees.

    - numeric: median imputation
    - bool / nullable boolean: 0.0 / 1.0, then like numeric
    - categorical / object: most-frequent imputation + OrdinalEncoder over
      the levels seen in training (discretized levels keep their order)

    Categorical levels never observed during fit are encoded as -1 and
    reported per row by `transform` instead of raising, so the caller can
    count those rows as misclassified.
    """
    columns_: List[str] = field(default_factory=list, init=False)
    numeric_cols_: List[str] = field(default_factory=list, init=False)
    categorical_cols_: List[str] = field(default_factory=list, init=False)
    ct_: Optional[ColumnTransformer] = field(default=None, init=False, repr=False)

    def _prepare(self, X: pd.DataFrame) -> pd.DataFrame:
        out = pd.DataFrame(index=X.index)
        for c in self.numeric_cols_:
            out[c] = pd.to_numeric(X[c], errors="coerce").astype("float64")
        for c in self.categorical_cols_:
            out[c] = as_category_strings(X[c])
        return out

    def fit(self, X: pd.DataFrame) -> "TreeFeatureEncoder":
        self.columns_ = list(X.columns)
        self.categorical_cols_ = [c for c in self.columns_ if is_categorical(X[c]) and not is_flag(X[c])]
        self.numeric_cols_ = [c for c in self.columns_ if c not in self.categorical_cols_]

        transformers = []
        if self.numeric_cols_:
            transformers.append((
                "num", SimpleImputer(strategy="median", keep_empty_features=True), self.numeric_cols_,
            ))
        if self.categorical_cols_:
            transformers.append(("cat", Pipeline(steps=[
                ("imputer", SimpleImputer(strategy="most_frequent")),
                ("ordinal", OrdinalEncoder(
                    categories=[observed_levels(X[c]) for c in self.categorical_cols_],
                    handle_unknown="use_encoded_value",
                    unknown_value=UNKNOWN_CODE,
                )),
            ]), self.categorical_cols_))

        self.ct_ = ColumnTransformer(
            transformers=transformers,
            remainder="drop",
            verbose_feature_names_out=False,
        ).set_output(transform="pandas")
        self.ct_.fit(self._prepare(X))
        return self

    def transform(self, X: pd.DataFrame) -> Tuple[pd.DataFrame, np.ndarray]:
        if self.ct_ is None:
            raise RuntimeError("TreeFeatureEncoder is not fitted yet.")
        missing = [c for c in self.columns_ if c not in X.columns]
        if missing:
            raise KeyError(f"Feature columns missing at prediction time: {missing}")

        out = self.ct_.transform(self._prepare(X))[self.columns_].astype("float64")
        out.index = X.index
        if self.categorical_cols_:
            unseen = (out[self.categorical_cols_] == UNKNOWN_CODE).any(axis=1).to_numpy()
        else:
            unseen = np.zeros(len(X), dtype=bool)
        return out, unseen

    def fit_transform(self, X: pd.DataFrame) -> Tuple[pd.DataFrame, np.ndarray]:
        return self.fit(X).transform(X)
