from __future__ import annotations
from dataclasses import dataclass
from typing import List

import pandas as pd

from ..errors import SchemaError
from .loader import require_columns

"""
Feature-Auswahl (Projektionen der Beobachtungstabelle).

Aufgabe:
- Music-only View und Music+Socio View, jeweils mit Länder-Spalte
- Länder-Profil: Socio-Features einmal pro Land statt pro Track

Wichtig:
Alle Funktionen geben neue DataFrames zurück, die Eingabe bleibt unverändert.
"""


@dataclass
class FeatureViews:
    """
    Die Projektionen, mit denen die Modelle arbeiten.

    Attributes
    ----------
    music:
        Musik-Features + Länder-Spalte.
    socio:
        Socio-politische Features + Länder-Spalte.
    music_socio:
        Musik- und Socio-Features + Länder-Spalte.
    """
    music: pd.DataFrame
    socio: pd.DataFrame
    music_socio: pd.DataFrame


def project(df: pd.DataFrame, features: List[str], country_col: str, where: str) -> pd.DataFrame:
    cols = [country_col, *[f for f in features if f != country_col]]
    require_columns(df, cols, where=where)
    return df[cols].copy()


def select_features(df: pd.DataFrame, music_features: List[str], socio_features: List[str],
                    country_col: str = "country") -> FeatureViews:
    return FeatureViews(
        music=project(df, music_features, country_col, "music view"),
        socio=project(df, socio_features, country_col, "socio view"),
        music_socio=project(df, [*music_features, *socio_features], country_col, "music+socio view"),
    )


def country_profile(df: pd.DataFrame, socio_features: List[str], country_col: str = "country") -> pd.DataFrame:
    """
    Zweck:
    - Socio-politische Features einmal pro Land (Index = Land).

    Warum?
    - In der Rohtabelle wiederholt sich derselbe Wert auf jedem Track des Landes.
      Das ist die Leakage-Quelle; explizit gruppiert sieht man das.

    Raises:
        ValueError: wenn ein Feature innerhalb eines Landes nicht konstant ist.
    """
    sub = project(df, socio_features, country_col, "country profile")
    n_values = sub.groupby(country_col).nunique(dropna=False)
    varying = [c for c in n_values.columns if (n_values[c] > 1).any()]
    if varying:
        raise ValueError(
            f"Socio feature(s) not constant within country: {', '.join(varying)}"
        )
    return sub.groupby(country_col, sort=True).first()


def attach_profile(rows: pd.DataFrame, profile: pd.DataFrame, country_col: str = "country") -> pd.DataFrame:
    """Join per-country features onto track rows at point of use."""
    if country_col not in rows.columns:
        raise SchemaError([country_col], where="rows to attach profile to")
    overlap = [c for c in profile.columns if c in rows.columns]
    left = rows.drop(columns=overlap)
    out = left.join(profile, on=country_col, how="left")
    unknown = rows.loc[~rows[country_col].isin(profile.index), country_col].unique()
    if len(unknown):
        raise ValueError(f"No profile for country/countries: {', '.join(map(str, unknown))}")
    return out
