# energy_MethodAttribution/core/energy.py
from __future__ import annotations
import logging
import numpy as np
import pandas as pd

from .errors import EmptyInputError, MissingColumnsError
from .model import ColumnRole, EnergyResult, ObservationWindow, PowerTable

_LOG = logging.getLogger(__name__)


# ---------- numeric kernels ----------
def overlap_seconds(t0: np.ndarray, t1: np.ndarray, w0: float, w1: float) -> np.ndarray:
    """Length of [t0, t1] ∩ [w0, w1] per row span, 0 when disjoint."""
    return np.clip(np.minimum(t1, w1) - np.maximum(t0, w0), 0.0, None)


def _valid(*arrays: np.ndarray) -> tuple[np.ndarray, ...]:
    mask = np.ones(arrays[0].shape, dtype=bool)
    for a in arrays:
        mask &= np.isfinite(a)
    return tuple(a[mask] for a in arrays)


def aligned_counter_J(t: np.ndarray, e: np.ndarray, w0: float, w1: float) -> tuple[float, int]:
    """Counter deltas scaled by the share of each row span inside the window; resets discarded."""
    t, e = _valid(t, e)
    if t.size < 2:
        return 0.0, 0
    dt = np.diff(t)
    d = np.diff(e)
    ov = overlap_seconds(t[:-1], t[1:], w0, w1)
    resets = int(np.sum((dt > 0) & (d < 0)))
    use = (dt > 0) & (d >= 0) & (ov > 0)
    return float(np.sum(d[use] * ov[use] / dt[use])), resets


def aligned_power_J(t: np.ndarray, p: np.ndarray, w0: float, w1: float) -> float:
    """Left-endpoint rectangles, clipped to the window."""
    t, p = _valid(t, p)
    if t.size < 2:
        return 0.0
    dt = np.diff(t)
    ov = overlap_seconds(t[:-1], t[1:], w0, w1)
    use = (dt > 0) & (ov > 0)
    return float(np.sum(np.maximum(0.0, p[:-1][use]) * ov[use]))


def counter_total_J(e: np.ndarray) -> tuple[float, int, bool]:
    """Sum of non-negative consecutive deltas -> (joules, resets, used_last_value)."""
    (vals,) = _valid(e)
    if vals.size == 0:
        return 0.0, 0, False
    d = np.diff(vals)
    resets = int(np.sum(d < 0))
    total = float(np.sum(d[d >= 0]))
    if total <= 0.0:
        return max(0.0, float(vals[-1])), resets, True
    return total, resets, False


def power_total_J(t: np.ndarray, p: np.ndarray) -> float:
    t, p = _valid(t, p)
    if t.size < 2:
        return 0.0
    return float(np.sum(np.maximum(0.0, p[:-1]) * np.maximum(0.0, np.diff(t))))


# ---------- strategy selection ----------
def _seconds_since(ts: pd.Series, origin: pd.Timestamp) -> np.ndarray:
    return (ts - origin).dt.total_seconds().to_numpy(dtype=float)


def _has_values(rows: pd.DataFrame, col: str | None) -> bool:
    return col is not None and bool(np.isfinite(rows[col].to_numpy(dtype=float)).any())


def _integrate_columns(table: PowerTable, energy_col: str | None, power_col: str | None,
                       window: ObservationWindow) -> EnergyResult | None:
    rows = table.rows
    cols = table.columns
    use_energy = _has_values(rows, energy_col)
    use_power = not use_energy and _has_values(rows, power_col)
    if not (use_energy or use_power):
        return None

    # aligned overlap (preferred)
    wall = rows["wall_clock"]
    if cols.has(ColumnRole.WALL_CLOCK) and not window.is_degenerate and wall.notna().any():
        t = _seconds_since(wall, window.start)
        w1 = window.duration_s
        if use_energy:
            total, resets = aligned_counter_J(t, rows[energy_col].to_numpy(dtype=float), 0.0, w1)
            strategy = "aligned-energy"
        else:
            total, resets = aligned_power_J(t, rows[power_col].to_numpy(dtype=float), 0.0, w1), 0
            strategy = "aligned-power"
        if total > 0:
            if resets:
                _LOG.warning("discarded %d negative counter delta(s) (counter reset)", resets)
            _LOG.info("aligned energy over rows by System Time within window [%s .. %s]",
                      window.start, window.end)
            return EnergyResult(joules=total, strategy=strategy, scope=cols.scope,
                                counter_resets=resets)

    _LOG.warning("falling back to whole-file energy integration (no usable System Time alignment)")

    if use_energy:
        total, resets, last = counter_total_J(rows[energy_col].to_numpy(dtype=float))
        if resets:
            _LOG.warning("discarded %d negative counter delta(s) (counter reset)", resets)
        return EnergyResult(joules=total, strategy="file-last-counter" if last else "file-energy",
                            scope=cols.scope, counter_resets=resets)

    if cols.has(ColumnRole.ELAPSED) and rows["elapsed_s"].notna().any():
        t = rows["elapsed_s"].to_numpy(dtype=float)
    elif wall.notna().any():
        t = _seconds_since(wall, wall.dropna().iloc[0])
    else:
        raise MissingColumnsError("Power column found but no Elapsed Time / System Time column",
                                  ",".join(cols.header))
    return EnergyResult(joules=power_total_J(t, rows[power_col].to_numpy(dtype=float)),
                        strategy="file-power", scope=cols.scope)


def integrate(table: PowerTable, window: ObservationWindow) -> EnergyResult:
    """
    Total Joules over the observation window for the table's scope.
    Scoped requests without usable scoped columns re-delegate to package level.
    """
    if table.rows.empty:
        raise EmptyInputError("Power table has no data rows")
    cols = table.columns
    scope = cols.scope

    if scope.kind != "package":
        energy_col = "scoped_energy_J" if cols.has(ColumnRole.SCOPED_ENERGY) else None
        power_col = "scoped_power_W" if cols.has(ColumnRole.SCOPED_POWER) else None
        try:
            res = _integrate_columns(table, energy_col, power_col, window)
        except MissingColumnsError as e:
            _LOG.warning("%s power column unusable: %s", scope.label, str(e).splitlines()[0])
            res = None
        if res is not None and res.joules > 0:
            if cols.degraded:
                res = EnergyResult(res.joules, res.strategy, res.scope, res.counter_resets, True)
            return res
        _LOG.warning("no usable %s power/energy columns found, falling back to package energy",
                     scope.label)

    energy_col = "energy_J" if cols.has(ColumnRole.ENERGY) else None
    power_col = "power_W" if cols.has(ColumnRole.POWER) else None
    if energy_col is None and power_col is None:
        raise MissingColumnsError("Energy/Power columns not found in header", ",".join(cols.header))
    res = _integrate_columns(table, energy_col, power_col, window)
    if res is None:
        _LOG.warning("energy/power columns carry no numeric values; total energy is 0 J")
        res = EnergyResult(joules=0.0, strategy="no-data", scope=scope)
    if scope.kind != "package":
        res = EnergyResult(res.joules, res.strategy, scope, res.counter_resets, True)
    return res
