"""Tests for prompt configuration stores."""

import pytest

from models.enums import StepId


_PROMPT_FILE = """\
## System Prompt
You write briefs.

## User Prompt
Context: {business_context}

## Preflight
Enough research for {theme}? Answer YES or NO.

## Model
claude-custom
"""


class TestSplitSections:
    def test_sections_by_header(self):
        from tools.config_store import split_sections
        sections = split_sections(_PROMPT_FILE)
        assert sections["System Prompt"] == "You write briefs."
        assert sections["Preflight"].startswith("Enough research")
        assert sections["Model"] == "claude-custom"

    def test_text_before_first_header_is_ignored(self):
        from tools.config_store import split_sections
        assert split_sections("# Title\nintro\n## A\nbody") == {"A": "body"}


class TestPromptFileConfigStore:
    def test_every_step_has_a_bundled_prompt(self, config_store):
        for step in StepId:
            config = config_store.load(step.value)
            assert config.step_id == step.value
            assert config.system_prompt
            assert config.user_prompt_template

    def test_bundled_sections(self, config_store):
        assert {"seed_context", "retrieval_system", "initial_queries", "analysis"} <= set(
            config_store.load("theme_generator").sections
        )
        assert {"research_system", "preflight", "supplemental_queries"} <= set(
            config_store.load("social_writer").sections
        )

    def test_model_defaults_from_settings(self, config_store, settings):
        assert config_store.load("article_editor").model_name == settings.llm_model_editing
        assert config_store.load("researcher").model_name == settings.llm_model_research

    def test_model_section_overrides_settings(self, settings, tmp_path):
        from tools.config_store import PromptFileConfigStore

        (tmp_path / "brief_creator.md").write_text(_PROMPT_FILE, encoding="utf-8")
        config = PromptFileConfigStore(settings, prompts_dir=tmp_path).load("brief_creator")
        assert config.model_name == "claude-custom"
        assert config.sections == {"preflight": "Enough research for {theme}? Answer YES or NO."}

    def test_accepts_step_enum(self, config_store):
        assert config_store.load(StepId.RESEARCHER).step_id == "researcher"

    def test_missing_file(self, settings, tmp_path):
        from config.exceptions import AgentConfigNotFoundError
        from tools.config_store import PromptFileConfigStore

        with pytest.raises(AgentConfigNotFoundError) as exc_info:
            PromptFileConfigStore(settings, prompts_dir=tmp_path).load("researcher")
        assert exc_info.value.step == "researcher"

    def test_missing_user_prompt_section(self, settings, tmp_path):
        from config.exceptions import ConfigurationError
        from tools.config_store import PromptFileConfigStore

        (tmp_path / "researcher.md").write_text("## System Prompt\nOnly this.\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            PromptFileConfigStore(settings, prompts_dir=tmp_path).load("researcher")

    def test_edits_apply_to_next_load(self, settings, tmp_path):
        from tools.config_store import PromptFileConfigStore

        path = tmp_path / "brief_creator.md"
        store = PromptFileConfigStore(settings, prompts_dir=tmp_path)
        path.write_text(_PROMPT_FILE, encoding="utf-8")
        assert store.load("brief_creator").system_prompt == "You write briefs."
        path.write_text(_PROMPT_FILE.replace("You write briefs.", "You plan campaigns."), encoding="utf-8")
        assert store.load("brief_creator").system_prompt == "You plan campaigns."


class TestDatabaseConfigStore:
    def test_missing_row(self, db):
        from config.exceptions import AgentConfigNotFoundError
        from tools.config_store import DatabaseConfigStore

        with pytest.raises(AgentConfigNotFoundError):
            DatabaseConfigStore(db).load("brief_creator")

    def test_seed_from_files(self, db, config_store):
        from tools.config_store import DatabaseConfigStore

        store = DatabaseConfigStore(db)
        assert store.seed_from(config_store) == len(StepId)
        assert store.load("theme_generator") == config_store.load("theme_generator")

    def test_seed_subset(self, db, config_store):
        from config.exceptions import AgentConfigNotFoundError
        from tools.config_store import DatabaseConfigStore

        store = DatabaseConfigStore(db)
        assert store.seed_from(config_store, step_ids=["brief_creator"]) == 1
        with pytest.raises(AgentConfigNotFoundError):
            store.load("researcher")


class TestBuildConfigStore:
    def test_files_by_default(self, settings):
        from tools.config_store import PromptFileConfigStore, build_config_store
        assert isinstance(build_config_store(settings), PromptFileConfigStore)

    def test_database_source(self, settings, db):
        from tools.config_store import ConfigurationStore, DatabaseConfigStore, build_config_store

        settings.prompt_source = "database"
        store = build_config_store(settings, db)
        assert isinstance(store, DatabaseConfigStore)
        assert store.db is db
        assert isinstance(store, ConfigurationStore)
