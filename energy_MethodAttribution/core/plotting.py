# energy_MethodAttribution/core/plotting.py
from __future__ import annotations
from pathlib import Path
import matplotlib.pyplot as plt

from .model import AttributionReport


def _short(method: str, width: int = 48) -> str:
    return method if len(method) <= width else "…" + method[-(width - 1):]


def save_attribution_plot(report: AttributionReport, out_dir: Path,
                          file_name: str = "attribution_energy.png") -> Path | None:
    """Horizontal bars of energy per method, largest on top."""
    if not report.rows:
        print("[INFO] no attributed methods; skipping energy plot.")
        return None
    out_dir.mkdir(parents=True, exist_ok=True)

    rows = list(reversed(report.rows))
    labels = [_short(r.method) for r in rows]
    values = [r.energy_J for r in rows]

    plt.figure(figsize=(11, max(3.0, 0.35 * len(rows) + 1.5)))
    plt.barh(range(len(rows)), values)
    plt.yticks(range(len(rows)), labels, fontsize=8)
    plt.xlabel("Energy [J]")
    e = report.energy
    plt.title(f"Energy per method: {e.scope.label}, {e.joules:.3f} J over {report.duration_s:.3f} s")
    plt.grid(True, axis="x", alpha=0.3)
    plt.tight_layout()
    out_path = out_dir / file_name
    plt.savefig(out_path, dpi=160)
    plt.close()
    print(f"[OK] energy plot: {len(rows)} methods → {out_path}")
    return out_path
