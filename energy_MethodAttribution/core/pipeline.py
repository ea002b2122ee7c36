# energy_MethodAttribution/core/pipeline.py
from __future__ import annotations
from pathlib import Path
from typing import Iterable
import logging

from .attribution import aggregate
from .config import AttributionConfig
from .energy import integrate
from .events import ingest
from .model import AttributionReport, PowerTable, SampleEvent
from .plotting import save_attribution_plot
from .reports import print_report, write_report
from .selector import MethodSelector
from ..loaders import jfr_loader, power_csv_loader

_LOG = logging.getLogger(__name__)


def attribute_energy(events: Iterable[SampleEvent], table: PowerTable,
                     cfg: AttributionConfig) -> AttributionReport:
    """reader -> integrator -> aggregator; no I/O besides logging."""
    selector = MethodSelector(cfg.selector)
    counts, window = ingest(events, selector, trace=cfg.trace_samples)
    energy = integrate(table, window)
    duration_s = window.duration_s
    rows = aggregate(counts, energy.joules, duration_s, cfg.top_n)
    _LOG.info("energy %.3f J via %s (%s); %d methods, %d samples",
              energy.joules, energy.strategy, energy.scope.label,
              len(counts.counts), counts.total_samples)
    return AttributionReport(rows=rows, duration_s=duration_s,
                             total_samples=counts.total_samples, energy=energy,
                             window=window, truncated_source=counts.truncated)


def run_pipeline(samples_path: Path, table_path: Path, cfg: AttributionConfig,
                 out_root: Path | None = None) -> AttributionReport:
    # power table first: a fatal table error should not cost a full pass over the samples
    table = power_csv_loader.load(table_path, cfg)
    events = jfr_loader.load_events(samples_path)
    report = attribute_energy(events, table, cfg)

    print_report(report)

    out_root = out_root or cfg.out_root
    if cfg.report_format != "none":
        write_report(report, out_root / "attribution", f"{samples_path.stem} attribution",
                     fmt=cfg.report_format, mat_variable=cfg.mat_variable)
    if cfg.plot:
        save_attribution_plot(report, out_root)
    return report
