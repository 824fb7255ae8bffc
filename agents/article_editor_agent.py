"""Article Editor Agent: tightens drafted articles and scores them."""

from agents.editing_agent import EditingAgent
from models.enums import StepId
from models.schemas import EditedArticleOutput


class ArticleEditorAgent(EditingAgent):
    step_id = StepId.ARTICLE_EDITOR
    draft_key = "article_output"
    items_key = "articles"
    output_key = "edited_article_output"
    output_schema = EditedArticleOutput
