# energy_MethodAttribution/core/config.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Literal
import yaml

from .model import EnergyScope

SamplingMode = Literal["default", "high", "ultra"]
ReportFormat = Literal["csv", "mat", "both", "none"]

# ----- selector defaults -----
INFRASTRUCTURE_PREFIXES: tuple[str, ...] = ("java.", "jdk.", "sun.", "javax.", "com.sun.")
SYNTHETIC_MARKERS: tuple[str, ...] = ("$", "lambda$")
SYNTHETIC_METHODS: tuple[str, ...] = ("<init>", "<clinit>")
DENY_METHODS: tuple[str, ...] = (
    "run", "call", "execute", "process", "compute", "calculate",
    "computeIntensive", "doWork", "sleep", "pause", "runWithGap", "warmup", "main",
)
HELPER_CLASS_MARKERS: tuple[str, ...] = ("Util", "Helper", "Common")
DOMAIN_NAMESPACE_MARKERS: tuple[str, ...] = (
    "torch.", "pytorch", "tensorflow", "deeplearning4j", "onnxruntime",
)
DOMAIN_VERBS: tuple[str, ...] = ("forward", "backward", "optimize", "train", "predict", "inference")


def _str_tuple(value, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return tuple(str(v) for v in value if str(v).strip())
    return default


@dataclass(frozen=True)
class SelectorConfig:
    infrastructure_prefixes: tuple[str, ...] = INFRASTRUCTURE_PREFIXES
    synthetic_markers: tuple[str, ...] = SYNTHETIC_MARKERS
    synthetic_methods: tuple[str, ...] = SYNTHETIC_METHODS
    deny_methods: tuple[str, ...] = DENY_METHODS
    helper_class_markers: tuple[str, ...] = HELPER_CLASS_MARKERS
    domain_namespace_markers: tuple[str, ...] = DOMAIN_NAMESPACE_MARKERS
    domain_verbs: tuple[str, ...] = DOMAIN_VERBS
    numeric_suffix: bool = True
    domain_markers: bool = False

    @classmethod
    def from_config(cls, cfg: dict | None, sampling_mode: SamplingMode = "default") -> "SelectorConfig":
        sel = (cfg or {}).get("selector", {}) or {}
        domain_default = sampling_mode == "ultra"
        return cls(
            infrastructure_prefixes=INFRASTRUCTURE_PREFIXES + _str_tuple(sel.get("extra_infrastructure_prefixes")),
            deny_methods=DENY_METHODS + _str_tuple(sel.get("extra_deny_methods")),
            helper_class_markers=HELPER_CLASS_MARKERS + _str_tuple(sel.get("extra_helper_class_markers")),
            domain_namespace_markers=DOMAIN_NAMESPACE_MARKERS + _str_tuple(sel.get("extra_domain_markers")),
            domain_verbs=DOMAIN_VERBS + _str_tuple(sel.get("extra_domain_verbs")),
            numeric_suffix=bool(sel.get("numeric_suffix", True)),
            domain_markers=bool(sel.get("domain_markers", domain_default) or domain_default),
        )


@dataclass(frozen=True)
class AttributionConfig:
    samples_path: Path | None = None
    power_table_path: Path | None = None
    out_root: Path = Path("out")
    top_n: int = 20
    report_format: ReportFormat = "csv"
    mat_variable: str = "attribution"
    plot: bool = False
    scope: EnergyScope = EnergyScope()
    domain_qualifier: str = "ia"
    table_timezone: str | None = None   # None -> host local zone
    sampling_mode: SamplingMode = "default"
    verbose: bool = True
    trace_samples: bool = False
    selector: SelectorConfig = field(default_factory=SelectorConfig)

    @classmethod
    def from_config(cls, cfg: dict | None) -> "AttributionConfig":
        cfg = cfg or {}
        inp = cfg.get("input", {}) or {}
        out = cfg.get("output", {}) or {}
        rep = cfg.get("report", {}) or {}
        eng = cfg.get("energy", {}) or {}
        smp = cfg.get("sampling", {}) or {}
        log = cfg.get("logging", {}) or {}

        mode = str(smp.get("mode", "default")).lower()
        if mode not in ("default", "high", "ultra"):
            raise ValueError(f"unknown sampling mode: {mode!r}")
        fmt = str(rep.get("format", "csv")).lower()
        if fmt not in ("csv", "mat", "both", "none"):
            raise ValueError(f"unknown report format: {fmt!r}")
        kind = str(eng.get("scope", "package")).lower()
        if kind not in ("package", "core", "domain"):
            raise ValueError(f"unknown energy scope: {kind!r}")
        top_n = int(rep.get("top_n", 20))
        if top_n < 0:
            raise ValueError("report.top_n must be >= 0")

        return cls(
            samples_path=Path(inp["samples"]) if inp.get("samples") else None,
            power_table_path=Path(inp["power_table"]) if inp.get("power_table") else None,
            out_root=Path(out.get("root", "out")),
            top_n=top_n,
            report_format=fmt,
            mat_variable=str(rep.get("mat_variable", "attribution")),
            plot=bool(rep.get("plot", False)),
            scope=EnergyScope(kind=kind, core=int(eng.get("core", 0))),
            domain_qualifier=str(eng.get("domain_qualifier", "ia")).strip().lower() or "ia",
            table_timezone=eng.get("table_timezone") or None,
            sampling_mode=mode,
            verbose=bool(log.get("verbose", True)),
            trace_samples=bool(log.get("trace_samples", False)),
            selector=SelectorConfig.from_config(cfg, mode),
        )

    def with_overrides(self, **changes) -> "AttributionConfig":
        """Return a copy with CLI overrides applied; the selector follows the sampling mode."""
        updated = replace(self, **changes)
        if "sampling_mode" in changes and changes["sampling_mode"] == "ultra":
            updated = replace(updated, selector=replace(updated.selector, domain_markers=True))
        return updated


def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}
