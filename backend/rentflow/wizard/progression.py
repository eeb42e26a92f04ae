"""Progression engine: how far may a draft advance?

States are step positions 0..N+1:
  0      nothing validated yet
  1..N   real steps
  N+1    review step, reachable once every real step passes

The wizard is strictly linear. A step only counts as reached when every
step before it validates, so a later valid step never rescues an earlier
failure.
"""

import logging
from collections.abc import Mapping
from typing import Any

from rentflow.wizard.registry import StepRegistry, WizardContext
from rentflow.wizard.rules import ErrorMap
from rentflow.wizard.validator import ValidationOutcome, validate_step

logger = logging.getLogger(__name__)


class ProgressionEngine:
    def __init__(self, registry: StepRegistry):
        self.registry = registry

    @property
    def last_step(self) -> int:
        return self.registry.last_step

    @property
    def review_step(self) -> int:
        return self.registry.review_step

    def validate_step(
        self, step: int, data: Mapping[str, Any], context: WizardContext
    ) -> ValidationOutcome:
        return validate_step(self.registry, step, data, context)

    def calculate_max_valid_step(
        self, data: Mapping[str, Any], requested_step: int, context: WizardContext
    ) -> int:
        """Longest prefix of valid steps among 1..min(requested_step, N)."""
        validated = 0
        for step in range(1, min(requested_step, self.last_step) + 1):
            outcome = self.validate_step(step, data, context)
            if not outcome.is_valid:
                logger.debug(
                    "%s wizard blocked at step %s: %s",
                    self.registry.name, step, sorted(outcome.errors),
                )
                break
            validated = step
        return validated

    def find_first_invalid_step(
        self, data: Mapping[str, Any], context: WizardContext
    ) -> int | None:
        for step in range(1, self.last_step + 1):
            if not self.validate_step(step, data, context).is_valid:
                return step
        return None

    def target_step(self, data: Mapping[str, Any], context: WizardContext) -> int:
        """Where a reloaded draft belongs: first broken step, else review."""
        first_invalid = self.find_first_invalid_step(data, context)
        return first_invalid if first_invalid is not None else self.review_step

    def collect_errors(
        self, data: Mapping[str, Any], context: WizardContext
    ) -> dict[int, ErrorMap]:
        """Errors of every failing step, keyed by step index."""
        failing: dict[int, ErrorMap] = {}
        for step in range(1, self.last_step + 1):
            outcome = self.validate_step(step, data, context)
            if not outcome.is_valid:
                failing[step] = outcome.errors
        return failing
