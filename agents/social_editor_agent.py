"""Social Editor Agent: fits drafted posts to their platform."""

from agents.editing_agent import EditingAgent
from models.enums import StepId
from models.schemas import EditedSocialOutput


class SocialEditorAgent(EditingAgent):
    """Edits platform-tagged short posts."""

    step_id = StepId.SOCIAL_EDITOR
    draft_key = "social_output"
    items_key = "posts"
    output_key = "edited_social_output"
    output_schema = EditedSocialOutput
