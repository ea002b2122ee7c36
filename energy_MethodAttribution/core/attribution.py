# energy_MethodAttribution/core/attribution.py
from __future__ import annotations

from .model import AttributionRow, MethodCounts

MIN_DURATION_S = 1e-9


def attribute(counts: MethodCounts, energy_J: float, duration_s: float) -> list[AttributionRow]:
    """Every method's share of the energy, in insertion order (no ranking, no truncation)."""
    total = counts.total_samples
    dur = max(MIN_DURATION_S, duration_s)
    rows: list[AttributionRow] = []
    for method, samples in counts.counts.items():
        share = 0.0 if total == 0 else samples / total
        e = energy_J * share
        rows.append(AttributionRow(method=method, samples=samples, share=share,
                                   energy_J=e, mWh=e / 3.6, avg_W=e / dur))
    return rows


def aggregate(counts: MethodCounts, energy_J: float, duration_s: float,
              top_n: int = 20) -> list[AttributionRow]:
    """Rank by energy (ties keep insertion order) and keep the first ``top_n`` rows."""
    if top_n < 0:
        raise ValueError("top_n must be >= 0")
    ranked = sorted(attribute(counts, energy_J, duration_s), key=lambda r: -r.energy_J)
    return ranked[:top_n]
