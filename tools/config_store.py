"""Configuration stores: where each step's prompts and model come from.

A store is read at step invocation time and never cached across runs, so
edits to prompt files or the ``agent_prompts`` table apply to the next step
that runs.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from config.exceptions import AgentConfigNotFoundError, ConfigurationError
from config.settings import Settings
from models.database import Database
from models.enums import StepId
from models.schemas import AgentConfig

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"

SYSTEM_SECTION = "System Prompt"
USER_SECTION = "User Prompt"

# Settings attribute holding the default model for each step
_STEP_MODEL_SETTING: dict[str, str] = {
    StepId.BRIEF_CREATOR.value: "llm_model_brief",
    StepId.THEME_GENERATOR.value: "llm_model_themes",
    StepId.RESEARCHER.value: "llm_model_research",
    StepId.ARTICLE_WRITER.value: "llm_model_writing",
    StepId.LINKEDIN_WRITER.value: "llm_model_writing",
    StepId.SOCIAL_WRITER.value: "llm_model_writing",
    StepId.ARTICLE_EDITOR.value: "llm_model_editing",
    StepId.LINKEDIN_EDITOR.value: "llm_model_editing",
    StepId.SOCIAL_EDITOR.value: "llm_model_editing",
}


@runtime_checkable
class ConfigurationStore(Protocol):
    """Read-only source of per-step prompt and model configuration."""

    def load(self, step_id: str) -> AgentConfig:
        """Return the active configuration for ``step_id``."""
        ...


def _section_key(header: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", header.strip().lower()).strip("_")


def split_sections(template: str) -> dict[str, str]:
    """Split a markdown prompt file into its ``## `` sections.

    Returns a mapping of header text to the stripped section body.
    """
    sections: dict[str, list[str]] = {}
    current: Optional[str] = None
    for line in template.split("\n"):
        if line.strip().startswith("## "):
            current = line.strip()[3:].strip()
            sections[current] = []
        elif current is not None:
            sections[current].append(line)
    return {name: "\n".join(lines).strip() for name, lines in sections.items()}


def default_model_for(step_id: str, settings: Settings) -> str:
    attr = _STEP_MODEL_SETTING.get(step_id)
    if attr is None:
        raise ConfigurationError(f"Unknown step '{step_id}'", {"step": step_id})
    return getattr(settings, attr)


class PromptFileConfigStore:
    """Loads step configuration from ``<prompts_dir>/<step_id>.md``.

    The model comes from Settings unless the file has a ``## Model`` section.
    """

    def __init__(self, settings: Optional[Settings] = None, prompts_dir: Optional[Path] = None):
        self.settings = settings or Settings()
        self.prompts_dir = Path(prompts_dir or PROMPTS_DIR)

    def load(self, step_id: str) -> AgentConfig:
        step_id = getattr(step_id, "value", step_id)
        path = self.prompts_dir / f"{step_id}.md"
        if not path.exists():
            raise AgentConfigNotFoundError(step_id)

        sections = split_sections(path.read_text(encoding="utf-8"))
        if SYSTEM_SECTION not in sections or USER_SECTION not in sections:
            raise ConfigurationError(
                f"Prompt file for '{step_id}' must have '{SYSTEM_SECTION}' and '{USER_SECTION}' sections",
                {"step": step_id, "path": str(path)},
            )

        system_prompt = sections.pop(SYSTEM_SECTION)
        user_prompt = sections.pop(USER_SECTION)
        model = sections.pop("Model", "").strip() or default_model_for(step_id, self.settings)

        logger.debug("Loaded prompt file for %s (%d extra sections)", step_id, len(sections))
        return AgentConfig(
            step_id=step_id,
            system_prompt=system_prompt,
            user_prompt_template=user_prompt,
            model_name=model,
            sections={_section_key(name): body for name, body in sections.items()},
        )


class DatabaseConfigStore:
    """Loads the active ``agent_prompts`` row for a step."""

    def __init__(self, db: Database):
        self.db = db

    def load(self, step_id: str) -> AgentConfig:
        step_id = getattr(step_id, "value", step_id)
        config = self.db.get_agent_prompt(step_id)
        if config is None:
            raise AgentConfigNotFoundError(step_id)
        return config

    def seed_from(self, source: ConfigurationStore, step_ids=None) -> int:
        """Copy configurations from another store into the database."""
        count = 0
        for step_id in step_ids or [s.value for s in StepId]:
            self.db.upsert_agent_prompt(source.load(step_id))
            count += 1
        logger.info("Seeded %d prompt configurations into the database", count)
        return count


def build_config_store(settings: Settings, db: Optional[Database] = None) -> ConfigurationStore:
    """Return the configuration store selected by ``settings.prompt_source``."""
    if settings.prompt_source == "database":
        return DatabaseConfigStore(db or Database(settings.sqlite_db_path))
    return PromptFileConfigStore(settings)
