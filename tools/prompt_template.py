"""Prompt template value object with a closed set of named slots."""

from dataclasses import dataclass, field
from string import Formatter
from typing import Any, Iterable

from config.exceptions import TemplateSlotError


def _find_slots(text: str) -> frozenset[str]:
    slots = set()
    for _, field_name, _, _ in Formatter().parse(text):
        if field_name is None:
            continue
        name = field_name.split(".")[0].split("[")[0]
        if not name or name.isdigit():
            raise ValueError(f"Positional placeholders are not allowed in prompt templates: {text[:80]!r}")
        slots.add(name)
    return frozenset(slots)


def format_list(items: Iterable[Any], bullet: str = "- ", empty: str = "None") -> str:
    """Render items as a bulleted block for inclusion in a prompt."""
    lines = [f"{bullet}{item}" for item in items]
    return "\n".join(lines) if lines else empty


@dataclass(frozen=True)
class PromptTemplate:
    """A ``str.format`` template whose slots must be filled exactly.

    Rendering fails when a slot is left unfilled or when a value is supplied
    for a slot the template does not declare. Literal braces are written as
    ``{{`` and ``}}``.
    """

    text: str
    slots: frozenset[str] = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "slots", _find_slots(self.text))

    def render(self, **values: Any) -> str:
        supplied = set(values)
        missing = self.slots - supplied
        unexpected = supplied - self.slots
        if missing or unexpected:
            raise TemplateSlotError(missing, unexpected)
        return self.text.format(**{k: "" if v is None else v for k, v in values.items()})

    def render_subset(self, **values: Any) -> str:
        """Render with only the slots this template declares, ignoring the rest.

        Used when one value set feeds several templates, which is how step
        prompts are rendered. Missing slots still fail; values for slots the
        template does not declare are dropped, so unexpected slots are never
        reported on this path.
        """
        return self.render(**{k: v for k, v in values.items() if k in self.slots})
