"""Social Writer Agent: short posts for Twitter, Facebook and Instagram."""

from agents.drafting_agent import DraftingAgent
from models.enums import StepId
from models.schemas import SocialOutput


class SocialWriterAgent(DraftingAgent):
    """Drafts platform-tagged short posts, each with a visual suggestion."""

    step_id = StepId.SOCIAL_WRITER
    count_field = "social_posts_count"
    output_key = "social_output"
    output_schema = SocialOutput
