"""Base agent class: the contract every generation step follows."""

import json
import logging
from typing import Any, Mapping, Optional

from config.exceptions import (
    ConfigurationError,
    ContentKitError,
    PreconditionError,
    StepError,
    WorkflowStateError,
)
from config.settings import Settings
from models.enums import StepId
from models.schemas import AgentConfig
from retrieval.vector_search import SearchCapability
from tools.agent_sdk_client import AgentSDKClient
from tools.config_store import ConfigurationStore
from tools.prompt_template import PromptTemplate, format_list

logger = logging.getLogger(__name__)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and not value)


def format_json(value: Any) -> str:
    """Render a record for inclusion in a prompt."""
    return json.dumps(value, ensure_ascii=False, indent=2)


def format_theme(theme: Mapping) -> str:
    reasons = format_list(theme.get("why_it_works", []))
    return (
        f"Title: {theme.get('title', '')}\n"
        f"Description: {theme.get('description', '')}\n"
        f"Why it works:\n{reasons}\n"
        f"Details: {theme.get('detailed_description', '')}"
    )


class BaseAgent:
    """Base class for the nine generation steps.

    Subclasses set ``step_id``, ``required_fields`` and ``output_keys`` and
    implement ``_generate``. ``execute`` is the step contract: it checks
    preconditions, runs the step, rejects fields the step does not own, and
    tags any error with the step id.
    """

    step_id: StepId
    required_fields: tuple[str, ...] = ()
    output_keys: tuple[str, ...] = ()

    def __init__(
        self,
        config_store: ConfigurationStore,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
        search: Optional[SearchCapability] = None,
    ):
        self.settings = settings or Settings()
        self.llm = llm_client or AgentSDKClient(self.settings)
        self.config_store = config_store
        self.search = search

    @property
    def name(self) -> str:
        return self.step_id.value

    async def execute(self, state: Mapping) -> dict:
        """Run the step against ``state`` and return the fields it produces.

        Raises:
            PreconditionError: If a required upstream field is missing.
            ContentKitError: Any capability or validation failure, with
                ``details["step"]`` set to this step's id.
        """
        self._require(state, *self.required_fields)
        logger.info("%s: starting", self.name)
        try:
            result = await self._generate(state)
        except ContentKitError as e:
            e.details.setdefault("step", self.name)
            logger.error("%s: failed: %s", self.name, e)
            raise
        except Exception as e:
            logger.exception("%s: unexpected failure", self.name)
            raise StepError(f"Step '{self.name}' failed: {e}", {"step": self.name}) from e

        foreign = set(result) - set(self.output_keys)
        if foreign:
            raise WorkflowStateError(
                f"Step '{self.name}' returned fields it does not own",
                {"step": self.name, "fields": ",".join(sorted(foreign))},
            )
        logger.info("%s: completed (%s)", self.name, ", ".join(sorted(result)))
        return result

    async def _generate(self, state: Mapping) -> dict:
        raise NotImplementedError

    def _require(self, state: Mapping, *fields: str) -> None:
        for field_name in fields:
            if _is_missing(state.get(field_name)):
                raise PreconditionError(self.name, field_name)

    def _search_capability(self) -> SearchCapability:
        if self.search is None:
            raise ConfigurationError(
                f"Step '{self.name}' needs a search capability but none was provided",
                {"step": self.name},
            )
        return self.search

    def _load_config(self) -> AgentConfig:
        """Load this step's configuration; called once per invocation."""
        return self.config_store.load(self.name)

    def _render(self, template_text: str, **values: Any) -> str:
        """Render a template using whichever of ``values`` it declares.

        Only missing slots are reported; see ``PromptTemplate.render_subset``.
        """
        return PromptTemplate(template_text).render_subset(**values)

    def _common_values(self, state: Mapping) -> dict[str, Any]:
        """Prompt slot values every step may reference."""
        brief = state.get("marketing_brief")
        return {
            "business_context": state.get("business_context", ""),
            "target_audience": state.get("target_audience") or "Not specified",
            "marketing_goals": state.get("marketing_goals") or "Not specified",
            "cta_type": state.get("cta_type", ""),
            "cta_url": state.get("cta_url") or "",
            "articles_count": state.get("articles_count", 0),
            "linkedin_posts_count": state.get("linkedin_posts_count", 0),
            "social_posts_count": state.get("social_posts_count", 0),
            "marketing_brief": format_json(brief) if brief else "",
        }
