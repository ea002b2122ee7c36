# energy_MethodAttribution/main.py
from __future__ import annotations
from pathlib import Path
import argparse
import logging
import sys

from .core.config import AttributionConfig, load_config
from .core.errors import EmptyInputError, MissingColumnsError
from .core.model import EnergyScope
from .core.pipeline import run_pipeline
from .loaders.jfr_loader import SUPPORTED_SUFFIXES
from .utils.jfc import write_settings

DEFAULT_CONFIG = Path(__file__).resolve().parent / "config.yaml"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="energy-attribution",
        description="Attribute measured CPU energy to Java methods from JFR execution samples.",
    )
    p.add_argument("samples", nargs="?", type=Path,
                   help="JFR recording (.jfr) or its 'jfr print --json' export (.json/.jsonl)")
    p.add_argument("power_csv", nargs="?", type=Path, help="power/energy CSV (Intel Power Gadget style)")
    p.add_argument("top_n", nargs="?", type=int, help="number of methods to show (default 20)")
    p.add_argument("--core", type=int, metavar="N", help="use power data from a specific core")
    p.add_argument("--use-ia", action="store_true", help="use IA (domain-wide) metrics")
    freq = p.add_mutually_exclusive_group()
    freq.add_argument("--high-freq", action="store_true", help="write 1 ms JFR settings (high-freq-jfr.jfc)")
    freq.add_argument("--ultra-freq", action="store_true",
                      help="write 0.2 ms JFR settings and prefer compute-framework methods")
    p.add_argument("-v", "--verbose", action="store_true", help="log the attributed method of every sample")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="YAML configuration file")
    p.add_argument("--out", type=Path, help="output directory for reports")
    p.add_argument("--format", choices=("csv", "mat", "both", "none"), help="report file format")
    p.add_argument("--plot", action="store_true", help="save a bar chart of energy per method")
    return p


def config_from_args(args: argparse.Namespace, cfg: dict) -> AttributionConfig:
    """YAML first, then command-line overrides."""
    conf = AttributionConfig.from_config(cfg)
    changes: dict = {}
    if args.samples is not None:
        changes["samples_path"] = args.samples
    if args.power_csv is not None:
        changes["power_table_path"] = args.power_csv
    if args.top_n is not None:
        if args.top_n < 0:
            raise ValueError("top_n must be >= 0")
        changes["top_n"] = args.top_n
    if args.use_ia:
        changes["scope"] = EnergyScope(kind="domain", core=conf.scope.core)
    elif args.core is not None:
        changes["scope"] = EnergyScope(kind="core", core=args.core)
    if args.ultra_freq:
        changes["sampling_mode"] = "ultra"
    elif args.high_freq:
        changes["sampling_mode"] = "high"
    if args.verbose:
        changes["trace_samples"] = True
        changes["verbose"] = True
    if args.out is not None:
        changes["out_root"] = args.out
    if args.format is not None:
        changes["report_format"] = args.format
    if args.plot:
        changes["plot"] = True
    return conf.with_overrides(**changes) if changes else conf


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # ---------- config ----------
    cfg = load_config(args.config) if args.config.exists() else {}
    try:
        conf = config_from_args(args, cfg)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.INFO if conf.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if conf.samples_path is None or conf.power_table_path is None:
        print("Usage: energy-attribution <profile.jfr> <power.csv> [topN] [--core N] [--use-ia] "
              "[--high-freq] [--ultra-freq] [--verbose]", file=sys.stderr)
        return 1
    for label, path in (("JFR file", conf.samples_path), ("Power CSV file", conf.power_table_path)):
        if not path.exists():
            print(f"ERROR: {label} not found: {path}", file=sys.stderr)
            return 1
    if conf.samples_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        print(f"ERROR: unsupported sample source: {conf.samples_path} "
              f"(expected {'/'.join(SUPPORTED_SUFFIXES)})", file=sys.stderr)
        return 1

    out_root = conf.out_root.resolve()
    if conf.verbose:
        print(f"[cfg] samples={conf.samples_path} power={conf.power_table_path}")
        print(f"[cfg] output={out_root} scope={conf.scope.label} top_n={conf.top_n} "
              f"sampling={conf.sampling_mode}")

    # ---------- sampling settings ----------
    write_settings(conf.sampling_mode, out_root)

    # ---------- attribution ----------
    try:
        report = run_pipeline(conf.samples_path, conf.power_table_path, conf, out_root)
    except (EmptyInputError, MissingColumnsError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if report.truncated_source:
        print("[WARN] sample source ended early; attribution uses the samples read so far.")
    if report.total_samples == 0:
        print("[WARN] no execution samples found; energy summary only.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
