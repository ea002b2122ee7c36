# energy_MethodAttribution/loaders/power_csv_loader.py
from __future__ import annotations
from pathlib import Path
from typing import IO, Iterable
import io
import logging
import numpy as np
import pandas as pd

from ..core.columns import resolve_columns
from ..core.config import AttributionConfig
from ..core.errors import EmptyInputError
from ..core.model import ColumnRole, EnergyScope, PowerTable
from ..core.normalize import BOM, FIELD_SEP, to_float, to_wall_clock

_LOG = logging.getLogger(__name__)

# canonical row column -> role feeding it
FLOAT_COLUMNS: tuple[tuple[str, ColumnRole], ...] = (
    ("energy_J",        ColumnRole.ENERGY),
    ("power_W",         ColumnRole.POWER),
    ("scoped_energy_J", ColumnRole.SCOPED_ENERGY),
    ("scoped_power_W",  ColumnRole.SCOPED_POWER),
    ("elapsed_s",       ColumnRole.ELAPSED),
)


# ---------- CSV reading ----------
def _as_stream(source: IO[str] | Iterable[str]) -> IO[str]:
    if hasattr(source, "readline"):
        return source
    return io.StringIO("".join(line if line.endswith("\n") else line + "\n" for line in source))


def _read_header(stream: IO[str]) -> list[str]:
    line = stream.readline()
    if line.startswith(BOM):
        line = line[1:]
    if not line.strip():
        raise EmptyInputError("Empty power table")
    fields = pd.read_csv(io.StringIO(line), sep=FIELD_SEP, engine="python", header=None,
                         dtype=str, keep_default_na=False).iloc[0]
    return [str(f).strip() for f in fields]


def _read_rows(stream: IO[str], width: int) -> pd.DataFrame:
    """Data lines as text cells; short rows are NaN-padded, long rows cut to the header width."""
    try:
        df = pd.read_csv(stream, sep=FIELD_SEP, engine="python", header=None,
                         names=range(width), index_col=False, dtype=str, skip_blank_lines=True,
                         on_bad_lines=lambda fields: fields[:width])
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=range(width), dtype=object)
    df = df.apply(lambda col: col.map(lambda v: v.strip() if isinstance(v, str) and v.strip() else np.nan))
    return df.dropna(how="all").reset_index(drop=True)


def _cells(raw: pd.DataFrame, idx: int | None) -> pd.Series:
    if idx is None:
        return pd.Series(np.nan, index=raw.index, dtype="object")
    return raw[idx]


# ---------- table ----------
def parse_power_table(source: IO[str] | Iterable[str], scope: EnergyScope = EnergyScope(),
                      tz: str | None = None, domain_qualifier: str = "ia") -> PowerTable:
    """
    Parse a power/energy export (Intel Power Gadget style CSV), from an open
    text stream or a sequence of lines.
    Header roles are resolved once; each data line contributes one row whose
    unparseable or missing fields become NaN / NaT.
    """
    stream = _as_stream(source)
    header = _read_header(stream)
    columns = resolve_columns(header, scope, domain_qualifier)

    raw = _read_rows(stream, len(header))
    if raw.empty:
        raise EmptyInputError("Power table has no data rows")

    cols = {name: to_float(_cells(raw, columns.index_of(role))) for name, role in FLOAT_COLUMNS}
    cols["wall_clock"] = to_wall_clock(_cells(raw, columns.index_of(ColumnRole.WALL_CLOCK)), tz=tz)
    rows = pd.DataFrame(cols)

    for name, role in FLOAT_COLUMNS + (("wall_clock", ColumnRole.WALL_CLOCK),):
        if columns.has(role):
            bad = int(rows[name].isna().sum())
            if bad:
                _LOG.debug("%s: %d of %d rows unparseable", name, bad, len(rows))

    return PowerTable(columns=columns, rows=rows)


def load(path: Path, cfg: AttributionConfig | None = None) -> PowerTable:
    """Read a power table file; the leading BOM, if any, is stripped."""
    cfg = cfg or AttributionConfig()
    with path.open("r", encoding="utf-8-sig", errors="replace", newline="") as f:
        table = parse_power_table(f, scope=cfg.scope, tz=cfg.table_timezone,
                                  domain_qualifier=cfg.domain_qualifier)
    _LOG.info("power table %s: %d rows, columns %s", path.name, len(table.rows),
              {r.value: table.columns.header[i] for r, i in table.columns.indices.items()})
    return table
