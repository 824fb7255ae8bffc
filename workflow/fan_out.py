"""Fan-out/fan-in group: run sibling steps concurrently against one snapshot."""

import asyncio
import copy
import logging
from types import MappingProxyType
from typing import Callable, Mapping

from agents.base_agent import BaseAgent
from config.exceptions import FanOutError
from models.enums import WorkflowStep

logger = logging.getLogger(__name__)

Gate = Callable[[Mapping], bool]


class FanOutGroup:
    """Concurrent sibling steps with all-or-nothing merge.

    Every selected step receives the same deep-copied, read-only snapshot of
    the input state. Fragments are merged only when all siblings succeed; a
    single failure discards every fragment and raises ``FanOutError``.
    """

    def __init__(self, name: str, complete_step: WorkflowStep):
        self.name = name
        self.complete_step = complete_step
        self._members: list[tuple[BaseAgent, Gate]] = []

    def add(self, step: BaseAgent, gate: Gate) -> "FanOutGroup":
        self._members.append((step, gate))
        return self

    def selected(self, state: Mapping) -> list[BaseAgent]:
        return [step for step, gate in self._members if gate(state)]

    async def run(self, state: Mapping) -> dict:
        steps = self.selected(state)
        if not steps:
            logger.info("%s: no steps selected, stage complete", self.name)
            return {"current_step": self.complete_step.value, "is_complete": True}

        snapshot = MappingProxyType(copy.deepcopy(dict(state)))
        logger.info("%s: running %s", self.name, ", ".join(s.name for s in steps))
        results = await asyncio.gather(
            *(step.execute(snapshot) for step in steps),
            return_exceptions=True,
        )

        failures = {
            step.name: result
            for step, result in zip(steps, results)
            if isinstance(result, BaseException)
        }
        if failures:
            for step_name, error in failures.items():
                logger.error("%s: %s failed: %s", self.name, step_name, error)
            raise FanOutError(self.name, failures) from next(iter(failures.values()))

        merged: dict = {}
        for fragment in results:
            merged.update(fragment)
        merged["current_step"] = self.complete_step.value
        return merged
