"""Step registry: the ordered, static table of wizard steps.

Each StepDefinition pairs a 1-based index with a pure rule provider
`(data, context) -> list[FieldRule]` and optional post-pass hooks
`(data, context, errors) -> None` for checks that span several fields.

The step after the last registered one is the synthetic review step;
it has no definition and always validates.
"""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from rentflow.wizard.rules import ErrorMap, FieldRule


@dataclass(frozen=True)
class WizardContext:
    """Everything a rule provider may consult besides the merged data."""

    entity: Any = None
    profile: Any = None
    today: date = field(default_factory=date.today)

    def has_document(self, slot: str) -> bool:
        """True once the profile holds a stored file for `slot`."""
        return bool(self.profile is not None and getattr(self.profile, f"{slot}_path", None))


RuleProvider = Callable[[Mapping[str, Any], WizardContext], list[FieldRule]]
AfterHook = Callable[[Mapping[str, Any], WizardContext, ErrorMap], None]


@dataclass(frozen=True)
class StepDefinition:
    index: int
    key: str
    title: str
    rules: RuleProvider
    after: tuple[AfterHook, ...] = ()


class StepRegistry:
    """Ordered steps of one wizard, looked up by index."""

    def __init__(self, name: str, steps: list[StepDefinition]):
        indices = [step.index for step in steps]
        if indices != list(range(1, len(steps) + 1)):
            raise ValueError(
                f"{name} wizard steps must be numbered 1..{len(steps)}, got {indices}"
            )
        self.name = name
        self._steps = {step.index: step for step in steps}

    @property
    def last_step(self) -> int:
        return len(self._steps)

    @property
    def review_step(self) -> int:
        return self.last_step + 1

    def get(self, index: int) -> StepDefinition | None:
        return self._steps.get(index)

    def __iter__(self) -> Iterator[StepDefinition]:
        return iter(self._steps[i] for i in sorted(self._steps))

    def __len__(self) -> int:
        return len(self._steps)
