from __future__ import annotations
import json
from pathlib import Path
from typing import Optional

import pandas as pd
from rich.console import Console
from rich.table import Table

"""
Reporting & Ausgabe.

Aufgabe:
- Speichert Reports (json)
- Gibt Confusion-Matrizen, Fehlerraten und Importance-Tabellen auf der Konsole aus

Wichtig:
Kein Training, keine Datenaufbereitung.
Nur ausgeben und persistieren. Modelle werden nicht gespeichert.
"""


def save_json(obj: dict, path: Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)


def frame_table(df: pd.DataFrame, title: Optional[str] = None, float_fmt: str = "{:.4f}") -> Table:
    table = Table(title=title)
    table.add_column(str(df.index.name or ""), style="bold")
    for c in df.columns:
        table.add_column(str(c), justify="right")
    # iterrows upcasts mixed rows to float, so format per column dtype
    columns = []
    for c in df.columns:
        s = df[c]
        if pd.api.types.is_float_dtype(s.dtype):
            columns.append(["" if pd.isna(v) else float_fmt.format(v) for v in s.tolist()])
        else:
            columns.append([str(v) for v in s.tolist()])
    for i, idx in enumerate(df.index):
        table.add_row(str(idx), *[col[i] for col in columns])
    return table


def print_report(report, console: Optional[Console] = None, top_n: int = 10):
    """Print every stage of a PipelineReport."""
    console = console or Console()
    for stage in report.stages():
        console.rule(f"[bold]{stage.name}")
        console.print(frame_table(stage.result.confusion, title="Confusion matrix (predicted x true)"))
        console.print(f"Error rate: [cyan]{stage.result.error_rate:.4f}[/cyan]  (n={stage.result.n}, "
                      f"unseen={stage.result.n_unseen})")
        if stage.importance is not None:
            imp = stage.importance.head(top_n)
            imp = imp.to_frame() if isinstance(imp, pd.Series) else imp
            console.print(frame_table(imp, title="Feature importance"))

    if report.clusters is not None:
        console.rule("[bold]Clusters")
        console.print(f"Feature: [cyan]{report.cluster_feature}[/cyan]")
        console.print(frame_table(report.clusters))

    if report.leakage:
        console.rule("[bold]Leakage check")
        console.print(
            f"{report.leakage['n_shared']}/{report.leakage['n_groups']} "
            f"{report.leakage['group_col']} group(s) occur in both partitions"
        )
