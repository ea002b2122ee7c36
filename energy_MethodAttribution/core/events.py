# energy_MethodAttribution/core/events.py
from __future__ import annotations
import logging
from typing import Iterable

from .errors import CorruptSampleSourceError
from .model import EXECUTION_SAMPLE, MethodCounts, ObservationWindow, SampleEvent
from .selector import MethodSelector

_LOG = logging.getLogger(__name__)

PROGRESS_EVERY = 100_000


def ingest(events: Iterable[SampleEvent], selector: MethodSelector | None = None,
           trace: bool = False) -> tuple[MethodCounts, ObservationWindow]:
    """
    Single pass over the sample source.
    Only execution samples with a non-empty stack are counted; their timestamps
    are folded into the window regardless of arrival order. A corrupt source
    ends the pass early and the partial result is returned.
    """
    selector = selector or MethodSelector()
    counts: dict[str, int] = {}
    total = 0
    window = ObservationWindow()
    truncated = False

    try:
        for event in events:
            if event.kind != EXECUTION_SAMPLE or not event.frames:
                continue
            if event.timestamp is not None:
                window = window.extend(event.timestamp)
            frame, tier = selector.select_with_tier(event.frames)
            key = frame.key
            counts[key] = counts.get(key, 0) + 1
            total += 1
            if trace:
                stamp = event.timestamp.strftime("%H:%M:%S.%f")[:12] if event.timestamp is not None else "--"
                _LOG.info("[%s-%04d] %s: %s (line %d)", tier, total, stamp, key, frame.line)
            if total % PROGRESS_EVERY == 0:
                _LOG.info("processed %s execution samples so far...", f"{total:,}")
    except CorruptSampleSourceError as e:
        truncated = True
        _LOG.warning("sample source unreadable after %d samples, using partial result: %s", total, e)

    if total == 0:
        _LOG.warning("no samples found; the recording may be empty or contain no execution samples")
    return MethodCounts(counts=counts, total_samples=total, truncated=truncated), window
