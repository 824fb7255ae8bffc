"""LinkedIn Writer Agent: professional posts built on the research dossier."""

from agents.drafting_agent import DraftingAgent
from models.enums import StepId
from models.schemas import LinkedInOutput


class LinkedInWriterAgent(DraftingAgent):
    step_id = StepId.LINKEDIN_WRITER
    count_field = "linkedin_posts_count"
    output_key = "linkedin_output"
    output_schema = LinkedInOutput
