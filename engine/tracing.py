"""Evaluation tracing for the discount engine.

The engine reports what it does (rule applied, rule skipped, rule config
rejected) through a tracer instead of printing. The default tracer logs;
``RecordingTracer`` keeps events in memory for tests and audit tooling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

from tillrules.domain.result import AppliedRuleInfo

logger = logging.getLogger(__name__)

TraceEventKind = Literal["applied", "skipped", "invalid"]


class DiscountTracer(Protocol):
    def rule_applied(self, info: AppliedRuleInfo, line_id: str | None) -> None: ...

    def rule_skipped(self, rule_id: str, line_id: str | None, reason: str) -> None: ...

    def rule_invalid(self, rule_id: str, rule_type: str, errors: tuple[str, ...]) -> None: ...


@dataclass(frozen=True)
class TraceEvent:
    kind: TraceEventKind
    rule_id: str
    line_id: str | None = None
    detail: str = ""


class LoggingTracer:
    """Default tracer: debug lines for the trace, warnings for bad configs."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def rule_applied(self, info: AppliedRuleInfo, line_id: str | None) -> None:
        self._log.debug(
            "Rule %s (%s) applied to %s: %s",
            info.rule_id,
            info.rule_type,
            line_id or "cart",
            info.total_calculated_discount,
        )

    def rule_skipped(self, rule_id: str, line_id: str | None, reason: str) -> None:
        self._log.debug("Rule %s skipped for %s: %s", rule_id, line_id or "cart", reason)

    def rule_invalid(self, rule_id: str, rule_type: str, errors: tuple[str, ...]) -> None:
        self._log.warning("Invalid rule configuration %s (%s): %s", rule_id, rule_type, "; ".join(errors))


class RecordingTracer:
    """Collects trace events in order."""

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []

    def rule_applied(self, info: AppliedRuleInfo, line_id: str | None) -> None:
        self.events.append(TraceEvent("applied", info.rule_id, line_id, str(info.total_calculated_discount)))

    def rule_skipped(self, rule_id: str, line_id: str | None, reason: str) -> None:
        self.events.append(TraceEvent("skipped", rule_id, line_id, reason))

    def rule_invalid(self, rule_id: str, rule_type: str, errors: tuple[str, ...]) -> None:
        self.events.append(TraceEvent("invalid", rule_id, None, f"{rule_type}: {'; '.join(errors)}"))

    def of_kind(self, kind: TraceEventKind) -> list[TraceEvent]:
        return [event for event in self.events if event.kind == kind]
