"""Article Writer Agent: long-form articles built on the research dossier."""

from agents.drafting_agent import DraftingAgent
from models.enums import StepId
from models.schemas import ArticleOutput


class ArticleWriterAgent(DraftingAgent):
    """Drafts 1–3 analytical articles."""

    step_id = StepId.ARTICLE_WRITER
    count_field = "articles_count"
    output_key = "article_output"
    output_schema = ArticleOutput
