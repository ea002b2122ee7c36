# energy_MethodAttribution/loaders/jfr_loader.py
from __future__ import annotations
from pathlib import Path
from typing import IO, Iterable, Iterator
import json
import logging
import subprocess
import ijson

from ..core.errors import CorruptSampleSourceError
from ..core.model import EXECUTION_SAMPLE, SampleEvent, StackFrame
from ..core.normalize import to_utc

_LOG = logging.getLogger(__name__)

JFR_TOOL = "jfr"
EVENTS_PREFIX = "recording.events.item"   # 'jfr print --json' layout
SUPPORTED_SUFFIXES = (".jfr", ".json", ".jsonl", ".ndjson")


# ---------- event decoding ----------
def _frame_from_json(obj: dict) -> StackFrame:
    method = obj["method"]
    type_name = str(method["type"]["name"]).replace("/", ".")
    line = obj.get("lineNumber", -1)
    return StackFrame(type_name=type_name, method=str(method["name"]),
                      line=int(line) if line is not None else -1)


def event_from_json(obj: dict) -> SampleEvent:
    """
    One event as printed by ``jfr print --json``:
    {"type": "jdk.ExecutionSample", "values": {"startTime": ..., "stackTrace": {"frames": [...]}}}
    """
    try:
        kind = str(obj["type"])
        values = obj.get("values") or {}
        if kind != EXECUTION_SAMPLE:
            return SampleEvent(kind=kind, timestamp=None)
        raw_ts = values.get("startTime")
        try:
            ts = to_utc(raw_ts) if raw_ts is not None else None
        except (TypeError, ValueError):
            _LOG.debug("unparseable startTime %r", raw_ts)
            ts = None
        stack = values.get("stackTrace") or {}
        frames = tuple(_frame_from_json(f) for f in (stack.get("frames") or ()))
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise CorruptSampleSourceError(f"malformed event: {e!r}") from e
    return SampleEvent(kind=kind, timestamp=ts, frames=frames)


def iter_document(events: Iterable[dict]) -> Iterator[SampleEvent]:
    for obj in events:
        yield event_from_json(obj)


# ---------- sources ----------
def _iter_stream(stream: IO[bytes], name: str) -> Iterator[SampleEvent]:
    """Events of a 'jfr print --json' document, decoded incrementally."""
    try:
        for obj in ijson.items(stream, EVENTS_PREFIX):
            yield event_from_json(obj)
    except (ijson.JSONError, ValueError) as e:
        raise CorruptSampleSourceError(f"{name}: {e}") from e


def iter_json(path: Path) -> Iterator[SampleEvent]:
    with path.open("rb") as f:
        yield from _iter_stream(f, path.name)


def iter_jsonl(path: Path) -> Iterator[SampleEvent]:
    """One event object per line; streamed, so a bad line keeps everything before it."""
    with path.open("rb") as f:
        for lineno, raw in enumerate(f, start=1):
            try:
                line = raw.decode("utf-8-sig")
                if not line.strip():
                    continue
                obj = json.loads(line)
            except ValueError as e:   # UnicodeDecodeError, JSONDecodeError
                raise CorruptSampleSourceError(f"{path.name}:{lineno}: {e}") from e
            yield event_from_json(obj)


def iter_jfr(path: Path, jfr_tool: str = JFR_TOOL) -> Iterator[SampleEvent]:
    """Stream a binary recording through the JDK ``jfr`` tool; events before a fault are kept."""
    cmd = [jfr_tool, "print", "--json", "--events", EXECUTION_SAMPLE, str(path)]
    try:
        proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except OSError as e:
        raise CorruptSampleSourceError(f"cannot run '{jfr_tool}': {e}") from e
    try:
        yield from _iter_stream(proc.stdout, path.name)
        _, err = proc.communicate()
        if proc.returncode != 0:
            raise CorruptSampleSourceError(
                f"'{' '.join(cmd)}' failed ({proc.returncode}): {err.decode(errors='replace').strip()}")
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.communicate()


def load_events(path: Path) -> Iterator[SampleEvent]:
    """
    Accepts: .jfr (via the jfr tool), .json (jfr print --json), .jsonl (one event per line).
    Returns a lazy iterator; read errors surface as CorruptSampleSourceError while iterating.
    """
    suffix = path.suffix.lower()
    if suffix == ".jfr":
        return iter_jfr(path)
    if suffix == ".json":
        return iter_json(path)
    if suffix in (".jsonl", ".ndjson"):
        return iter_jsonl(path)
    raise ValueError(f"unsupported sample source: {path.name} (expected {'/'.join(SUPPORTED_SUFFIXES)})")
