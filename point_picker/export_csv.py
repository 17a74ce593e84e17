from __future__ import annotations

import csv
import io
from typing import List, Optional, Sequence

from .calibration import Point


def delimiter_for_path(path: str) -> str:
    # .txt gets tab-delimited output, everything else comma-separated
    return "\t" if path.lower().endswith(".txt") else ","


def header_row(n_curves: int, labels: Optional[Sequence[str]] = None) -> List[str]:
    row: List[str] = []
    for i in range(n_curves):
        label = labels[i] if labels and i < len(labels) else ""
        if label:
            row += [f"{label} X", f"{label} Y"]
        else:
            row += [f"X{i}", f"Y{i}"]
    return row


def curves_to_rows(
    curves: Sequence[Sequence[Point]],
    labels: Optional[Sequence[str]] = None,
    pad: str = "0",
) -> List[List[object]]:
    """Header plus one row per point index; short curves are padded with ``pad``."""
    rows: List[List[object]] = [header_row(len(curves), labels)]
    n_rows = max((len(c) for c in curves), default=0)
    for j in range(n_rows):
        row: List[object] = []
        for c in curves:
            if j < len(c):
                row += [c[j][0], c[j][1]]
            else:
                row += [pad, pad]
        rows.append(row)
    return rows


def curves_csv_string(
    curves: Sequence[Sequence[Point]],
    labels: Optional[Sequence[str]] = None,
    delimiter: str = ",",
    pad: str = "0",
) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, delimiter=delimiter, lineterminator="\n")
    w.writerows(curves_to_rows(curves, labels, pad))
    return buf.getvalue().rstrip()


def write_curves_csv(
    path: str,
    curves: Sequence[Sequence[Point]],
    labels: Optional[Sequence[str]] = None,
    delimiter: Optional[str] = None,
    pad: str = "0",
) -> None:
    if delimiter is None:
        delimiter = delimiter_for_path(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f, delimiter=delimiter)
        w.writerows(curves_to_rows(curves, labels, pad))
