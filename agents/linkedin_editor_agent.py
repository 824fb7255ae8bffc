"""LinkedIn Editor Agent: sharpens hooks and calls to action on drafted posts."""

from agents.editing_agent import EditingAgent
from models.enums import StepId
from models.schemas import EditedLinkedInOutput


class LinkedInEditorAgent(EditingAgent):
    step_id = StepId.LINKEDIN_EDITOR
    draft_key = "linkedin_output"
    items_key = "posts"
    output_key = "edited_linkedin_output"
    output_schema = EditedLinkedInOutput
