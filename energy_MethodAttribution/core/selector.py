# energy_MethodAttribution/core/selector.py
from __future__ import annotations
import logging
import re
from typing import Callable, Sequence

from .config import SelectorConfig
from .model import StackFrame

_LOG = logging.getLogger(__name__)

_NUMERIC_SUFFIX = re.compile(r"(\d+)$")

Picker = Callable[[Sequence[StackFrame]], "StackFrame | None"]


class MethodSelector:
    """
    Turn one call stack (leaf -> root) into the single attributed method key.

    Order (first tier returning a frame wins):
      0) infrastructure filter: runtime namespaces, synthetic frames, deny-listed
         helper names and helper classes never become the attributed method
      1) numeric suffix: highest trailing numeral (work7 beats work3); ties -> closest to leaf
      2) domain marker (when enabled): compute-framework namespace or compute verb
      3) fallback: first surviving frame; raw leaf when everything was filtered
    """

    def __init__(self, config: SelectorConfig | None = None):
        self.config = config or SelectorConfig()
        tiers: list[tuple[str, Picker]] = []
        if self.config.numeric_suffix:
            tiers.append(("NUMERIC", self._pick_numeric))
        if self.config.domain_markers:
            tiers.append(("DOMAIN", self._pick_domain))
        tiers.append(("SAMPLE", self._pick_first))
        self.tiers: tuple[tuple[str, Picker], ...] = tuple(tiers)

    # ---------- filter ----------
    def is_infrastructure(self, frame: StackFrame) -> bool:
        cfg = self.config
        if frame.type_name.startswith(cfg.infrastructure_prefixes):
            return True
        if frame.method in cfg.synthetic_methods:
            return True
        if any(m in frame.method for m in cfg.synthetic_markers):
            return True
        if frame.method in cfg.deny_methods:
            return True
        simple_name = frame.type_name.rsplit(".", 1)[-1]
        return any(m in simple_name for m in cfg.helper_class_markers)

    # ---------- tiers ----------
    @staticmethod
    def _pick_numeric(frames: Sequence[StackFrame]) -> StackFrame | None:
        best: StackFrame | None = None
        best_id = -1
        for frame in frames:
            m = _NUMERIC_SUFFIX.search(frame.method)
            if m is None:
                continue
            numeric_id = int(m.group(1))
            if numeric_id > best_id:   # strict: equal ids keep the frame nearer the leaf
                best, best_id = frame, numeric_id
        return best

    def _pick_domain(self, frames: Sequence[StackFrame]) -> StackFrame | None:
        cfg = self.config
        for frame in frames:
            if any(m in frame.type_name for m in cfg.domain_namespace_markers):
                return frame
            if any(v in frame.method for v in cfg.domain_verbs):
                return frame
        return None

    @staticmethod
    def _pick_first(frames: Sequence[StackFrame]) -> StackFrame | None:
        return frames[0] if frames else None

    # ---------- public ----------
    def select_with_tier(self, frames: Sequence[StackFrame]) -> tuple[StackFrame, str]:
        """
        (attributed frame, tier name). Total over non-empty stacks; callers skip
        empty ones, an empty stack raises ValueError.
        """
        if not frames:
            raise ValueError("cannot select a method from an empty call stack")
        surviving = [f for f in frames if not self.is_infrastructure(f)]
        for name, pick in self.tiers:
            frame = pick(surviving)
            if frame is not None:
                return frame, name
        _LOG.debug("every frame filtered; attributing to leaf %s", frames[0].key)
        return frames[0], "LEAF"

    def select(self, frames: Sequence[StackFrame]) -> str:
        return self.select_with_tier(frames)[0].key
