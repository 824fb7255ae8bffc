"""Configuration settings loaded from .env file."""

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Authentication is handled by the Claude Agent SDK, so no API key lives here.
    Model names below are the defaults used when a step's configuration does
    not name its own model.
    """

    # LLM Models: one per step family
    llm_model_brief: str = "claude-opus-4-6"      # BriefCreatorAgent
    llm_model_themes: str = "claude-opus-4-6"     # ThemeGeneratorAgent synthesis
    llm_model_research: str = "claude-opus-4-6"   # ResearchAgent synthesis
    llm_model_writing: str = "claude-opus-4-6"    # Article/LinkedIn/Social writers
    llm_model_editing: str = "claude-opus-4-6"    # Article/LinkedIn/Social editors
    llm_model_analysis: str = "claude-haiku-4-5"  # Query generation, analysis, pre-flight
    llm_timeout_seconds: float = 300.0

    # Prompt configuration source: markdown files or the agent_prompts table
    prompt_source: Literal["files", "database"] = "files"

    # Retrieval loop
    max_search_iterations: int = 12
    theme_search_top_k: int = 5
    theme_search_top_n: int = 5
    theme_results_keep: int = 30
    research_search_top_k: int = 10
    research_search_top_n: int = 5
    research_results_keep: int = 40
    research_synthesis_evidence: int = 20
    supplemental_search_top_k: int = 5
    search_timeout_seconds: float = 30.0

    # Theme regeneration (0 = unlimited)
    max_theme_regenerations: int = 0

    # Storage
    sqlite_db_path: Path = Path("./data/contentkit.db")
    chroma_persist_dir: Path = Path("./data/chroma")
    chroma_collection: str = "whitepaper_chunks"

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator(
        "max_search_iterations",
        "theme_search_top_k",
        "theme_search_top_n",
        "theme_results_keep",
        "research_search_top_k",
        "research_search_top_n",
        "research_results_keep",
        "research_synthesis_evidence",
        "supplemental_search_top_k",
    )
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("search_timeout_seconds", "llm_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float, info) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("max_theme_regenerations")
    @classmethod
    def validate_max_regenerations(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_theme_regenerations must be >= 0")
        return v

    @field_validator("sqlite_db_path", "chroma_persist_dir", "log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def validate_search_windows(self) -> "Settings":
        for prefix in ("theme", "research"):
            top_k = getattr(self, f"{prefix}_search_top_k")
            top_n = getattr(self, f"{prefix}_search_top_n")
            if top_n > top_k:
                raise ValueError(
                    f"{prefix}_search_top_n ({top_n}) must not exceed "
                    f"{prefix}_search_top_k ({top_k})"
                )
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
