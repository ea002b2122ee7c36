# energy_MethodAttribution/utils/jfc.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class JfcEvent:
    name: str
    settings: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class SamplingProfile:
    file_name: str
    events: tuple[JfcEvent, ...]
    hint: str


HIGH_FREQ = SamplingProfile(
    file_name="high-freq-jfr.jfc",
    events=(
        JfcEvent("jdk.ExecutionSample", (("enabled", "true"), ("period", "1 ms"), ("stackDepth", "64"))),
        JfcEvent("jdk.MethodSample", (("enabled", "true"), ("period", "1 ms"))),
    ),
    hint="-XX:StartFlightRecording:settings={path}",
)

ULTRA_FREQ = SamplingProfile(
    file_name="ultra-freq-jfr.jfc",
    events=(
        JfcEvent("jdk.ExecutionSample", (("enabled", "true"), ("period", "0.2 ms"), ("stackDepth", "128"))),
        JfcEvent("jdk.ObjectAllocationInNewTLAB", (("enabled", "true"), ("stackTrace", "true"),
                                                    ("threshold", "1 MB"))),
        JfcEvent("jdk.ThreadCPULoad", (("enabled", "true"), ("period", "10 ms"))),
        JfcEvent("jdk.GCHeapSummary", (("enabled", "true"),)),
    ),
    hint="-XX:StartFlightRecording:settings={path}",
)

PROFILES: dict[str, SamplingProfile] = {"high": HIGH_FREQ, "ultra": ULTRA_FREQ}


def render(profile: SamplingProfile) -> str:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', '<configuration version="2.0">']
    for ev in profile.events:
        lines.append(f'  <event name="{ev.name}">')
        for key, value in ev.settings:
            lines.append(f'    <setting name="{key}">{value}</setting>')
        lines.append("  </event>")
    lines.append("</configuration>")
    return "\n".join(lines) + "\n"


def write_settings(mode: str, out_dir: Path) -> Path | None:
    """Write the JFR settings file for a sampling mode; 'default' writes nothing."""
    profile = PROFILES.get(mode)
    if profile is None:
        return None
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / profile.file_name
    out_path.write_text(render(profile), encoding="utf-8")
    print(f"[OK] wrote JFR settings → {out_path}")
    print(f"     use with: {profile.hint.format(path=out_path)}")
    return out_path
