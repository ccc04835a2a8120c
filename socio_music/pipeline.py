from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from .data.checker import check_country_constancy
from .data.loader import load_dataset, require_columns
from .data.selection import attach_profile, country_profile, select_features
from .evaluation.metrics import ClassificationReport, leakage_summary
from .features.discretize import discretize
from .models.age_clustering import GroupAggregateClusterer
from .models.forest import RandomForestComparison
from .models.tree import PrunedTreeClassifier
from .settings import RunConfig
from .splits import stratified_split

logger = logging.getLogger(__name__)

"""
End-to-End Pipeline.

Ablauf:
1) Laden + Konstanz-Check der Socio-Features pro Land
2) Views: music / socio / music+socio
3) Baum: Land ~ Socio-Features (roh) -> zeigt das Leakage-Artefakt
4) Baum: Land ~ Socio-Features (diskretisiert, vor dem Split)
5) KMeans auf dem Mittelwert des wichtigsten Features pro Land -> Altersgruppe
6) Baum: Altersgruppe ~ Music-Features
7) Random Forest auf denselben Daten (Vergleich)

Jeder Schritt erzeugt neue Tabellen; nichts wird in-place verändert.
"""

AGE_GROUP_COL = "age_group"


@dataclass
class StageResult:
    name: str
    result: ClassificationReport
    importance: Optional[Union[pd.Series, pd.DataFrame]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = {"name": self.name, **self.result.to_dict(), **self.extra}
        if isinstance(self.importance, pd.Series):
            out["importance"] = {str(k): float(v) for k, v in self.importance.items()}
        elif isinstance(self.importance, pd.DataFrame):
            out["importance"] = {
                str(k): {c: float(v) for c, v in row.items()} for k, row in self.importance.iterrows()
            }
        return out


@dataclass
class PipelineReport:
    config: RunConfig
    socio_raw: StageResult
    socio_discretized: StageResult
    music_tree: StageResult
    music_forest: StageResult
    music_forest_oob: StageResult
    cluster_feature: str
    clusters: Optional[pd.DataFrame] = None
    country_clusters: Optional[pd.Series] = None
    leakage: Dict[str, Any] = field(default_factory=dict)
    constancy: Optional[pd.DataFrame] = None

    def stages(self) -> List[StageResult]:
        return [self.socio_raw, self.socio_discretized, self.music_tree, self.music_forest, self.music_forest_oob]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.model_dump(),
            "stages": [s.to_dict() for s in self.stages()],
            "cluster_feature": self.cluster_feature,
            "clusters": {} if self.clusters is None else {
                str(k): {c: float(v) for c, v in row.items()} for k, row in self.clusters.iterrows()
            },
            "country_clusters": {} if self.country_clusters is None else {
                str(k): str(v) for k, v in self.country_clusters.items()
            },
            "leakage": self.leakage,
            "constancy": [] if self.constancy is None else json.loads(self.constancy.to_json(orient="records")),
        }


def fit_tree_stage(name: str, table: pd.DataFrame, label_col: str, cfg: RunConfig) -> StageResult:
    part = stratified_split(table, label_col, train_fraction=cfg.train_fraction, seed=cfg.seed)
    train, test = part.take(table)
    tree = PrunedTreeClassifier(seed=cfg.seed, cv_folds=cfg.cv_folds, prune_rule=cfg.prune_rule).fit(train, label_col)
    result = tree.evaluate(test)
    logger.info("[%s] test error rate %.4f on %d rows", name, result.error_rate, result.n)
    return StageResult(
        name=name,
        result=result,
        importance=tree.feature_importance(),
        extra={"ccp_alpha": tree.ccp_alpha_, "n_leaves": int(tree.tree_.get_n_leaves()),
               "n_train": len(train), "n_test": len(test)},
    )


def pick_cluster_feature(importance: pd.Series, cfg: RunConfig) -> str:
    if cfg.cluster_feature is not None:
        return cfg.cluster_feature
    ranked = importance[importance > 0]
    if ranked.empty:
        logger.warning("Tree has no splits; clustering on %s", cfg.fallback_cluster_feature)
        return cfg.fallback_cluster_feature
    return str(ranked.index[0])


def run_pipeline(df: pd.DataFrame, cfg: Optional[RunConfig] = None) -> PipelineReport:
    cfg = cfg or RunConfig()
    country = cfg.country_col
    require_columns(df, [country, *cfg.music_features, *cfg.socio_features], where="observation table")

    constancy = check_country_constancy(df, cfg.socio_features, country_col=country)
    varying = constancy.loc[constancy["status"] == "warn", "column"].tolist()
    if varying:
        logger.warning("Socio feature(s) vary within a country: %s", ", ".join(varying))

    views = select_features(df, cfg.music_features, cfg.socio_features, country_col=country)

    # socio features once per country, joined onto the track rows where used
    profile = country_profile(df, cfg.socio_features, country_col=country)
    tracks = df[[country]]

    # 1) raw socio features: every country is in train and test -> leakage
    socio = attach_profile(tracks, profile, country_col=country)
    socio_raw = fit_tree_stage("socio_raw", socio, country, cfg)
    part = stratified_split(socio, country, train_fraction=cfg.train_fraction, seed=cfg.seed)
    leakage = leakage_summary(*part.take(socio), group_col=country)
    socio_raw.extra["leakage"] = leakage

    # 2) cut points over all countries, before splitting
    binned_profile = discretize(profile, bin_count=cfg.bin_count, columns=cfg.socio_features)
    socio_binned = attach_profile(tracks, binned_profile, country_col=country)
    socio_discretized = fit_tree_stage("socio_discretized", socio_binned, country, cfg)
    socio_discretized.extra["bin_count"] = cfg.bin_count

    # 3) cluster countries on the most influential feature (raw values)
    feature = pick_cluster_feature(socio_discretized.importance, cfg)
    clusterer = GroupAggregateClusterer(
        cluster_count=cfg.cluster_count,
        seed=cfg.seed,
        labels=cfg.resolved_cluster_labels(),
        label_col=AGE_GROUP_COL,
    ).fit(
        profile.reset_index() if feature in profile.columns else df,
        value_col=feature,
        group_col=country,
    )

    # 4) age group from music features alone
    music = clusterer.assign(views.music).drop(columns=[country])
    music_tree = fit_tree_stage("music_tree", music, AGE_GROUP_COL, cfg)

    # 5) random forest on the same split
    part = stratified_split(music, AGE_GROUP_COL, train_fraction=cfg.train_fraction, seed=cfg.seed)
    train, test = part.take(music)
    forest = RandomForestComparison(seed=cfg.seed, n_estimators=cfg.n_estimators).fit(train, AGE_GROUP_COL)
    importance = forest.feature_importance(test)
    music_forest = StageResult(
        name="music_forest", result=forest.evaluate(test), importance=importance,
        extra={"n_train": len(train), "n_test": len(test)},
    )
    music_forest_oob = StageResult(name="music_forest_oob", result=forest.oob_report_)

    logger.info(
        "Music -> %s: tree error %.4f, forest error %.4f (OOB %.4f)",
        AGE_GROUP_COL, music_tree.result.error_rate,
        music_forest.result.error_rate, music_forest_oob.result.error_rate,
    )

    return PipelineReport(
        config=cfg,
        socio_raw=socio_raw,
        socio_discretized=socio_discretized,
        music_tree=music_tree,
        music_forest=music_forest,
        music_forest_oob=music_forest_oob,
        cluster_feature=feature,
        clusters=clusterer.summary(),
        country_clusters=clusterer.group_labels_,
        leakage=leakage,
        constancy=constancy,
    )


def run_from_csv(data_path, cfg: Optional[RunConfig] = None, sep: str = ",") -> PipelineReport:
    cfg = cfg or RunConfig()
    df = load_dataset(data_path, cfg.country_col, cfg.music_features, cfg.socio_features, sep=sep)
    return run_pipeline(df, cfg)
