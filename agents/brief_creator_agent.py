"""Brief Creator Agent: turns campaign input into a structured marketing brief."""

import logging
from typing import Mapping

from agents.base_agent import BaseAgent
from models.enums import StepId, WorkflowStep
from models.schemas import MarketingBrief

logger = logging.getLogger(__name__)


class BriefCreatorAgent(BaseAgent):
    """Produces the marketing brief every later step reads."""

    step_id = StepId.BRIEF_CREATOR
    required_fields = ("business_context", "cta_type")
    output_keys = ("marketing_brief", "current_step")

    async def _generate(self, state: Mapping) -> dict:
        config = self._load_config()
        user_prompt = self._render(config.user_prompt_template, **self._common_values(state))

        brief = await self.llm.invoke(
            config.system_prompt,
            user_prompt,
            schema=MarketingBrief,
            model=config.model_name,
        )

        logger.info(
            "BriefCreatorAgent: %d objectives, %d key messages",
            len(brief.campaign_objectives),
            len(brief.key_messages),
        )
        return {
            "marketing_brief": brief.model_dump(mode="json"),
            "current_step": WorkflowStep.BRIEF_COMPLETE.value,
        }
