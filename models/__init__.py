"""Models package: database, record schemas, and enums."""

from models.database import Database
from models.run import WorkflowRun
from models.enums import (
    WorkflowStep,
    StepId,
    Confidence,
    CtaType,
    SocialPlatform,
)
from models.schemas import (
    AgentConfig,
    MarketingBrief,
    Theme,
    ThemeBatch,
    ResearchDossier,
    ArticleOutput,
    LinkedInOutput,
    SocialOutput,
    EditedArticleOutput,
    EditedLinkedInOutput,
    EditedSocialOutput,
    SearchHit,
    RetrievalLogEntry,
    FinalContentOutput,
)

__all__ = [
    "Database",
    "WorkflowRun",
    "WorkflowStep",
    "StepId",
    "Confidence",
    "CtaType",
    "SocialPlatform",
    "AgentConfig",
    "MarketingBrief",
    "Theme",
    "ThemeBatch",
    "ResearchDossier",
    "ArticleOutput",
    "LinkedInOutput",
    "SocialOutput",
    "EditedArticleOutput",
    "EditedLinkedInOutput",
    "EditedSocialOutput",
    "SearchHit",
    "RetrievalLogEntry",
    "FinalContentOutput",
]
