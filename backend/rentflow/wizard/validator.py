"""Single-step validation."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rentflow.wizard.registry import StepRegistry, WizardContext
from rentflow.wizard.rules import ErrorMap, evaluate


@dataclass(frozen=True)
class ValidationOutcome:
    errors: ErrorMap = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_step(
    registry: StepRegistry,
    step: int,
    data: Mapping[str, Any],
    context: WizardContext,
) -> ValidationOutcome:
    """Validate one step of `registry` against merged data.

    Indices without a definition (the review step and beyond) are valid.
    The declarative rules run first, then the step's after-hooks, which
    may add further field errors.
    """
    definition = registry.get(step)
    if definition is None:
        return ValidationOutcome()

    errors = evaluate(definition.rules(data, context), data, context.today)
    for hook in definition.after:
        hook(data, context, errors)
    return ValidationOutcome(errors)
