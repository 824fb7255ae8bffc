"""Enumerations for content workflow tracking."""

from enum import Enum


class WorkflowStep(str, Enum):
    """Value of ``current_step``: the last step that completed successfully."""

    BRIEF_CREATION = "brief_creation"
    BRIEF_COMPLETE = "brief_complete"
    THEMES_GENERATED = "themes_generated"
    AWAITING_THEME_SELECTION = "awaiting_theme_selection"
    THEME_SELECTED = "theme_selected"
    RESEARCH_COMPLETE = "research_complete"
    CONTENT_GENERATED = "content_generated"
    CONTENT_EDITED = "content_edited"


class StepId(str, Enum):
    BRIEF_CREATOR = "brief_creator"
    THEME_GENERATOR = "theme_generator"
    RESEARCHER = "researcher"
    ARTICLE_WRITER = "article_writer"
    LINKEDIN_WRITER = "linkedin_writer"
    SOCIAL_WRITER = "social_writer"
    ARTICLE_EDITOR = "article_editor"
    LINKEDIN_EDITOR = "linkedin_editor"
    SOCIAL_EDITOR = "social_editor"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CtaType(str, Enum):
    DOWNLOAD_WHITEPAPER = "download_whitepaper"
    CONTACT_US = "contact_us"


class SocialPlatform(str, Enum):
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
