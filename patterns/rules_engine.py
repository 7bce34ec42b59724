"""Ordered rule-chain pattern.

Rules are plain functions: (document, context) -> RuleResult.
Each rule checks its own trigger, mutates the shared document in place
when it fires, and reports what it did. No network calls happen inside a
rule; everything a rule needs arrives through the context.

The chain is a fixed tuple. Order matters because later rules read state
produced by earlier ones, so it is defined in code rather than loaded from
configuration.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT")
CtxT = TypeVar("CtxT")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class RuleResult:
    """Outcome of a single rule evaluation."""

    applied: bool
    rule_name: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RuleSetResult:
    """Aggregate outcome of a rule chain run."""

    results: list[RuleResult]
    applied: list[RuleResult] = field(default_factory=list)

    def __post_init__(self):
        self.applied = [r for r in self.results if r.applied]

    @property
    def applied_names(self) -> list[str]:
        return [r.rule_name for r in self.applied]


def skipped(rule_name: str, message: str = "trigger not met") -> RuleResult:
    """Shorthand for a rule whose trigger condition was false."""
    return RuleResult(applied=False, rule_name=rule_name, message=message)


# ---------------------------------------------------------------------------
# Chain execution
# ---------------------------------------------------------------------------

Rule = Callable[[DocT, CtxT], RuleResult]


@dataclass(frozen=True)
class RuleChain(Generic[DocT, CtxT]):
    """A named, fixed sequence of rules.

    Example::

        chain = RuleChain("availability", (seed_labels, add_aeon_option))
        outcome = chain.run(document, context)
        if "aeon_option" in outcome.applied_names:
            ...
    """

    name: str
    rules: Sequence[Rule]

    def run(self, document: DocT, context: CtxT) -> RuleSetResult:
        results = []
        for rule in self.rules:
            result = rule(document, context)
            if result.applied:
                logger.info("%s: %s - %s", self.name, result.rule_name, result.message)
            else:
                logger.debug("%s: skip %s - %s", self.name, result.rule_name, result.message)
            results.append(result)
        return RuleSetResult(results=results)
