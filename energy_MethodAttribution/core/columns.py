# energy_MethodAttribution/core/columns.py
from __future__ import annotations
import logging
import re
from typing import Sequence

from .errors import MissingColumnsError
from .model import ColumnRole, ColumnRoleMap, EnergyScope
from .normalize import normalize_header

_LOG = logging.getLogger(__name__)

_JOULES = r"\b(j|joules?)\b"
_WATTS = r"\b(w|watts?)\b"

# role -> ordered patterns; the first pattern with any matching column wins,
# within a pattern the left-most column wins
PACKAGE_RULES: tuple[tuple[ColumnRole, tuple[re.Pattern, ...]], ...] = (
    (ColumnRole.ENERGY, (
        re.compile(rf"\b(package|processor|pkg)\b.*\benergy\b.*{_JOULES}"),
        re.compile(rf"\bia\b.*\benergy\b.*{_JOULES}"),
    )),
    (ColumnRole.POWER, (
        re.compile(rf"\b(package|processor|pkg)\b(?!.*\blimit\b).*\bpower\b.*{_WATTS}"),
        re.compile(rf"\bia\b.*\bpower\b.*{_WATTS}"),
    )),
    (ColumnRole.ELAPSED, (re.compile(r"elapsed\s*time"),)),
    (ColumnRole.WALL_CLOCK, (re.compile(r"system\s*time"),)),
)


def _core_rules(core: int) -> tuple[tuple[ColumnRole, tuple[re.Pattern, ...]], ...]:
    n = rf"{int(core)}(?!\d)"
    return (
        (ColumnRole.SCOPED_ENERGY, (
            re.compile(rf"\b(ia\s*core|core|processor)\s*{n}\s*energy\b.*{_JOULES}"),
            re.compile(rf"\bia\s*energy\s*{n}.*{_JOULES}"),
        )),
        (ColumnRole.SCOPED_POWER, (
            re.compile(rf"\b(ia\s*core|core|processor)\s*{n}\s*power\b.*{_WATTS}"),
            re.compile(rf"\bia\s*power\s*{n}.*{_WATTS}"),
        )),
    )


def _domain_rules(qualifier: str) -> tuple[tuple[ColumnRole, tuple[re.Pattern, ...]], ...]:
    q = re.escape(qualifier.lower())
    return (
        (ColumnRole.SCOPED_ENERGY, (re.compile(rf"\b{q}\b.*\benergy\b.*{_JOULES}"),)),
        (ColumnRole.SCOPED_POWER, (re.compile(rf"\b{q}\b.*\bpower\b.*{_WATTS}"),)),
    )


def _match(rules, names: Sequence[str]) -> dict[ColumnRole, int]:
    found: dict[ColumnRole, int] = {}
    for role, patterns in rules:
        for rx in patterns:
            idx = next((i for i, name in enumerate(names) if rx.search(name)), None)
            if idx is not None:
                found[role] = idx
                break
    return found


def resolve_columns(header: Sequence[str], scope: EnergyScope = EnergyScope(),
                    domain_qualifier: str = "ia") -> ColumnRoleMap:
    """
    Map header columns to roles for the requested scope.

    Package roles are always resolved. For a core scope the exact per-core
    column wins; core 0 may degrade to the domain-wide column (flagged). A scope
    that stays unresolved is left to the integrator, which falls back to the
    package columns.
    """
    raw = tuple(str(h).strip() for h in header)
    names = [normalize_header(h) for h in raw]
    indices = _match(PACKAGE_RULES, names)
    degraded = False

    if scope.kind == "core":
        scoped = _match(_core_rules(scope.core), names)
        if len(scoped) < 2 and scope.core == 0:
            domain = _match(_domain_rules(domain_qualifier), names)
            for role, idx in domain.items():
                if role not in scoped:
                    scoped[role] = idx
                    degraded = True
            if not scoped:
                degraded = True
            if degraded:
                _LOG.warning("no core 0 specific power/energy columns found, "
                             "falling back to broader columns")
        indices.update(scoped)
    elif scope.kind == "domain":
        indices.update(_match(_domain_rules(domain_qualifier), names))

    energy_roles = (ColumnRole.ENERGY, ColumnRole.POWER,
                    ColumnRole.SCOPED_ENERGY, ColumnRole.SCOPED_POWER)
    if not any(r in indices for r in energy_roles):
        raise MissingColumnsError("Energy/Power columns not found in header", ",".join(raw))

    for role, idx in indices.items():
        _LOG.debug("column %-14s -> [%d] %s", role.value, idx, raw[idx])
    return ColumnRoleMap(header=raw, indices=indices, scope=scope, degraded=degraded)
