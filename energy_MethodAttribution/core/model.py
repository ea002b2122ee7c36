# energy_MethodAttribution/core/model.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Mapping
import pandas as pd

EXECUTION_SAMPLE = "jdk.ExecutionSample"

ScopeKind = Literal["package", "core", "domain"]


@dataclass(frozen=True)
class StackFrame:
    type_name: str            # declaring class, dotted form (demo.Top10Load)
    method: str
    line: int = -1

    @property
    def key(self) -> str:
        return f"{self.type_name}.{self.method}"


@dataclass(frozen=True)
class SampleEvent:
    kind: str                          # JFR event type name
    timestamp: pd.Timestamp | None     # UTC
    frames: tuple[StackFrame, ...] = ()  # leaf -> root; empty when the stack was null


@dataclass(frozen=True)
class ObservationWindow:
    start: pd.Timestamp | None = None
    end: pd.Timestamp | None = None

    def extend(self, ts: pd.Timestamp) -> "ObservationWindow":
        start = ts if self.start is None or ts < self.start else self.start
        end = ts if self.end is None or ts > self.end else self.end
        return ObservationWindow(start, end)

    @property
    def duration_s(self) -> float:
        if self.start is None or self.end is None:
            return 0.0
        return max(0.0, (self.end - self.start).total_seconds())

    @property
    def is_degenerate(self) -> bool:
        return self.start is None or self.end is None or self.end <= self.start


@dataclass(frozen=True)
class MethodCounts:
    counts: dict[str, int] = field(default_factory=dict)  # insertion ordered
    total_samples: int = 0
    truncated: bool = False                               # source ended early (corrupt)


@dataclass(frozen=True)
class EnergyScope:
    kind: ScopeKind = "package"
    core: int = 0

    @property
    def label(self) -> str:
        if self.kind == "core":
            return f"core {self.core}"
        if self.kind == "domain":
            return "IA"
        return "package"


class ColumnRole(Enum):
    ENERGY = "energy"
    POWER = "power"
    ELAPSED = "elapsed"
    WALL_CLOCK = "wall_clock"
    SCOPED_ENERGY = "scoped_energy"
    SCOPED_POWER = "scoped_power"


@dataclass(frozen=True)
class ColumnRoleMap:
    header: tuple[str, ...]
    indices: Mapping[ColumnRole, int]   # one column may serve several roles
    scope: EnergyScope = EnergyScope()
    degraded: bool = False              # scoped request satisfied by a broader column

    def index_of(self, role: ColumnRole) -> int | None:
        return self.indices.get(role)

    def name_of(self, role: ColumnRole) -> str | None:
        idx = self.index_of(role)
        return None if idx is None else self.header[idx]

    def has(self, role: ColumnRole) -> bool:
        return role in self.indices

    def roles(self) -> dict[int, list[ColumnRole]]:
        """column index -> roles resolved for it"""
        out: dict[int, list[ColumnRole]] = {}
        for role, idx in self.indices.items():
            out.setdefault(idx, []).append(role)
        return out


@dataclass(frozen=True)
class PowerTable:
    columns: ColumnRoleMap
    # one row per data line; columns: energy_J, power_W, scoped_energy_J,
    # scoped_power_W, elapsed_s (float, NaN when absent), wall_clock (UTC, NaT when absent)
    rows: pd.DataFrame


@dataclass(frozen=True)
class EnergyResult:
    joules: float
    strategy: str                 # aligned-energy | aligned-power | file-energy | file-last-counter | file-power | no-data
    scope: EnergyScope = EnergyScope()
    counter_resets: int = 0       # negative deltas discarded
    degraded: bool = False

    @property
    def mWh(self) -> float:
        return self.joules / 3.6


@dataclass(frozen=True)
class AttributionRow:
    method: str
    samples: int
    share: float
    energy_J: float
    mWh: float
    avg_W: float


@dataclass(frozen=True)
class AttributionReport:
    rows: list[AttributionRow]
    duration_s: float
    total_samples: int
    energy: EnergyResult
    window: ObservationWindow = ObservationWindow()
    truncated_source: bool = False

    @property
    def total_mWh(self) -> float:
        return self.energy.mWh
