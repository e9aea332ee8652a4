"""Single-intent chatbot: answers "what is the status" questions."""
from utils.complaint_service import ComplaintService
from utils.errors import NotFound, ValidationError

STATUS_PHRASES: tuple[str, ...] = ("what is the status", "status")

ID_PROMPT = 'Please provide your complaint id. Example: { "id": "<your-id>", "message": "status" }'
FALLBACK_REPLY = (
    'I can tell you the status of a complaint. Try: "What is the status of my complaint?" '
    "and include your complaint id."
)


class ChatbotService:
    def __init__(self, complaints: ComplaintService):
        self.complaints = complaints

    def respond(self, message: str | None, complaint_id: str | None = None) -> str:
        if not message or not message.strip():
            raise ValidationError("message required")

        lowered = message.lower()
        if not any(phrase in lowered for phrase in STATUS_PHRASES):
            return FALLBACK_REPLY
        if not complaint_id:
            return ID_PROMPT
        try:
            complaint = self.complaints.get(complaint_id)
        except NotFound:
            return f"No complaint found with id {complaint_id}"
        return f"Complaint {complaint_id} is currently: {complaint.status}"
