# energy_MethodAttribution/core/reports.py
from __future__ import annotations
from pathlib import Path
import numpy as np
import pandas as pd
from scipy.io import savemat

from .config import ReportFormat
from .model import AttributionReport

REPORT_COLUMNS = ["method", "samples", "share", "energy_J", "mWh", "avg_W"]


def build_dataframe(report: AttributionReport) -> pd.DataFrame:
    """Ranked rows + TOTAL row (whole recording, not just the rows shown)."""
    rows = [
        {"method": r.method, "samples": r.samples, "share": round(r.share, 9),
         "energy_J": round(r.energy_J, 6), "mWh": round(r.mWh, 6), "avg_W": round(r.avg_W, 6)}
        for r in report.rows
    ]
    total_J = report.energy.joules
    total = {
        "method": "TOTAL",
        "samples": report.total_samples,
        "share": 1.0 if report.total_samples else 0.0,
        "energy_J": round(total_J, 6),
        "mWh": round(report.total_mWh, 6),
        "avg_W": round(total_J / max(1e-9, report.duration_s), 6),
    }
    return pd.DataFrame(rows + [total], columns=REPORT_COLUMNS)


# ---------- console ----------
def format_summary(report: AttributionReport) -> str:
    e = report.energy
    return (f"Recording duration: {report.duration_s:.3f}s, total samples: {report.total_samples:,}, "
            f"total {e.scope.label} energy: {e.joules:.3f} J ({e.mWh:.3f} mWh)")


def format_table(report: AttributionReport) -> str:
    lines = [f"{'Method':<60} {'Samples':>10} {'%':>7} {'Energy (J)':>12} {'mWh':>10} {'Avg W':>10}"]
    for r in report.rows:
        lines.append(f"{r.method[:60]:<60} {r.samples:>10,} {r.share * 100.0:>6.1f}% "
                     f"{r.energy_J:>12.3f} {r.mWh:>10.3f} {r.avg_W:>10.3f}")
    return "\n".join(lines)


def print_report(report: AttributionReport) -> None:
    print(format_summary(report))
    print(format_table(report))


# ---------- files ----------
def _write_csv(df_out: pd.DataFrame, out_csv: Path, title: str) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=False, encoding="utf-8")
    print(f"[OK] wrote report: {title} → {out_csv}")


def _to_mat_cellstr(seq: list[str]) -> np.ndarray:
    """Make a MATLAB column cell array from a list of strings."""
    arr = np.empty((len(seq), 1), dtype=object)
    arr[:, 0] = [("" if s is None else str(s)) for s in seq]
    return arr


def _write_mat(df_out: pd.DataFrame, out_mat: Path, varname: str, title: str) -> None:
    """
    Save a MATLAB struct with fields matching the CSV columns.
    Method names become a cell array (Nx1), numerics become double (Nx1).
    """
    out_mat.parent.mkdir(parents=True, exist_ok=True)

    def numcol(name: str) -> np.ndarray:
        return df_out[name].to_numpy(dtype=float).reshape(-1, 1)

    mat_struct = {"method": _to_mat_cellstr(df_out["method"].tolist())}
    for name in REPORT_COLUMNS[1:]:
        mat_struct[name] = numcol(name)
    savemat(out_mat, {varname: mat_struct})
    print(f"[OK] wrote report: {title} → {out_mat}")


def write_report(report: AttributionReport, out_base: Path, title: str,
                 fmt: ReportFormat = "csv", mat_variable: str = "attribution") -> pd.DataFrame:
    """
    Write report(s) in the requested format.
    - out_base is a *base path without extension* (e.g., .../attribution)
    - fmt: "csv" | "mat" | "both" | "none"
    """
    df_out = build_dataframe(report)
    if fmt in ("csv", "both"):
        _write_csv(df_out, out_base.with_suffix(".csv"), title)
    if fmt in ("mat", "both"):
        _write_mat(df_out, out_base.with_suffix(".mat"), mat_variable, title)
    return df_out
