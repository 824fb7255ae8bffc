"""Agents package: the nine generation steps."""

from agents.base_agent import BaseAgent
from agents.brief_creator_agent import BriefCreatorAgent
from agents.theme_generator_agent import ThemeGeneratorAgent
from agents.research_agent import ResearchAgent
from agents.drafting_agent import DraftingAgent
from agents.article_writer_agent import ArticleWriterAgent
from agents.linkedin_writer_agent import LinkedInWriterAgent
from agents.social_writer_agent import SocialWriterAgent
from agents.editing_agent import EditingAgent
from agents.article_editor_agent import ArticleEditorAgent
from agents.linkedin_editor_agent import LinkedInEditorAgent
from agents.social_editor_agent import SocialEditorAgent

__all__ = [
    "BaseAgent",
    "BriefCreatorAgent",
    "ThemeGeneratorAgent",
    "ResearchAgent",
    "DraftingAgent",
    "ArticleWriterAgent",
    "LinkedInWriterAgent",
    "SocialWriterAgent",
    "EditingAgent",
    "ArticleEditorAgent",
    "LinkedInEditorAgent",
    "SocialEditorAgent",
]
