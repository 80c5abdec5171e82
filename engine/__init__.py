"""Pure discount computation: evaluator, rule kinds and the engine.

Usage:
    from tillrules.engine import DiscountEngine
    result = DiscountEngine(campaign).process(context)
"""

from tillrules.engine.engine import DiscountEngine
from tillrules.engine.evaluator import (
    RuleValidation,
    evaluate_rule,
    generate_rule_id,
    validate_buy_get_rule,
    validate_rule_config,
)
from tillrules.engine.tracing import DiscountTracer, LoggingTracer, RecordingTracer, TraceEvent

__all__ = [
    "DiscountEngine",
    "DiscountTracer",
    "LoggingTracer",
    "RecordingTracer",
    "RuleValidation",
    "TraceEvent",
    "evaluate_rule",
    "generate_rule_id",
    "validate_buy_get_rule",
    "validate_rule_config",
]
