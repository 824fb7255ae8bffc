"""Editing agent base: polishes one channel's draft and scores it."""

import logging
from typing import Mapping, Type

from pydantic import BaseModel

from agents.base_agent import BaseAgent, format_json, format_theme

logger = logging.getLogger(__name__)


class EditingAgent(BaseAgent):
    """Edits the draft stored under ``draft_key`` into ``output_key``."""

    draft_key: str
    items_key: str  # list field holding the drafted items, e.g. "articles"
    output_key: str
    output_schema: Type[BaseModel]

    @property
    def required_fields(self) -> tuple[str, ...]:
        return ("marketing_brief", self.draft_key)

    @property
    def output_keys(self) -> tuple[str, ...]:
        return (self.output_key,)

    async def _generate(self, state: Mapping) -> dict:
        config = self._load_config()
        draft = state[self.draft_key]
        theme = state.get("selected_theme")

        user_prompt = self._render(
            config.user_prompt_template,
            **self._common_values(state),
            draft=format_json(draft),
            theme=format_theme(theme) if theme else "Not specified",
        )
        edited = await self.llm.invoke(
            config.system_prompt,
            user_prompt,
            schema=self.output_schema,
            model=config.model_name,
        )

        drafted_items = len(draft.get(self.items_key, []))
        edited_items = len(getattr(edited, self.items_key))
        if drafted_items != edited_items:
            logger.warning(
                "%s: editor returned %d items for a draft of %d",
                self.name, edited_items, drafted_items,
            )

        logger.info("%s: quality score %.1f", self.name, edited.quality_score)
        return {self.output_key: edited.model_dump(mode="json")}
