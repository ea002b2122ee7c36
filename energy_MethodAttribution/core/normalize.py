# energy_MethodAttribution/core/normalize.py
from __future__ import annotations
import datetime as dt
import re
import pandas as pd

BOM = "﻿"
FIELD_SEP = r"\s*,\s*"
_WS = re.compile(r"\s+")
_HMS_MILLIS_FMT = "%H:%M:%S:%f"          # Intel Power Gadget 'HH:MM:SS:mmm'
_ISO_FMTS = ("%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S",
             "%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S")
_HAS_OFFSET = r"(?:Z|[+-]\d{2}:?\d{2})$"


def normalize_header(name: str) -> str:
    """'Cumulative_IA  Energy_0(Joules)' -> 'cumulative ia energy 0(joules)'"""
    s = str(name).replace(BOM, " ").replace("_", " ").lower()
    return _WS.sub(" ", s).strip()


def to_float(s) -> pd.Series:
    if pd.api.types.is_numeric_dtype(s):
        return s.astype(float)
    return pd.to_numeric(s.astype(str).str.strip(), errors="coerce")


def _local_tz() -> dt.tzinfo:
    return dt.datetime.now().astimezone().tzinfo


def _strip(series) -> pd.Series:
    s = pd.Series(series, dtype="object")
    return s.map(lambda v: v.strip() if isinstance(v, str) and v.strip() else None)


def to_wall_clock(series, tz: str | None = None, today: dt.date | None = None) -> pd.Series:
    """
    System Time cells -> UTC timestamps (NaT when unparseable).
    - 'HH:MM:SS:mmm' anchored to ``today``
    - 'YYYY-MM-DD HH:MM:SS[.ffffff]' ('T' separator accepted), read in ``tz``
      (host local zone when None)
    - ISO values carrying an offset keep it
    """
    s = _strip(series)

    hms = pd.to_datetime(s, format=_HMS_MILLIS_FMT, errors="coerce")
    naive = hms - hms.dt.normalize() + pd.Timestamp(today or dt.date.today())
    for fmt in _ISO_FMTS:
        if naive.notna().all():
            break
        naive = naive.fillna(pd.to_datetime(s, format=fmt, errors="coerce"))

    out = naive.dt.tz_localize(tz if tz else _local_tz(), ambiguous="NaT",
                               nonexistent="NaT").dt.tz_convert("UTC")

    offset = out.isna() & s.str.contains(_HAS_OFFSET, regex=True, na=False)
    if offset.any():
        out[offset] = pd.to_datetime(s[offset], format="ISO8601", utc=True, errors="coerce")
    return out.rename(getattr(series, "name", None))


def parse_wall_clock(text, tz: str | None = None, today: dt.date | None = None) -> pd.Timestamp:
    """One System Time cell; see ``to_wall_clock``."""
    return to_wall_clock(pd.Series([text], dtype="object"), tz=tz, today=today).iloc[0]


def to_utc(value) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")
