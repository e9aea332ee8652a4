"""Public feed of resolved complaints and the status chatbot."""
from flask import Blueprint, jsonify, request
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from utils.forms import ApiForm, first_error, request_formdata, strip_filter
from utils.services import get_services

public_bp = Blueprint("public", __name__)


class ChatbotForm(ApiForm):
    message = TextAreaField(
        "Message",
        filters=[strip_filter],
        validators=[DataRequired(message="message required"), Length(max=1000)],
    )
    id = StringField("Complaint id", filters=[strip_filter], validators=[Optional()])


@public_bp.route("/resolved", methods=["GET"])
def resolved_complaints():
    limit = request.args.get("limit", type=int)
    complaints = get_services().complaints.list_resolved(limit)
    return jsonify([complaint.to_dict() for complaint in complaints])


@public_bp.route("/chatbot", methods=["POST"])
def chatbot():
    form = ChatbotForm(formdata=request_formdata())
    if not form.validate():
        return jsonify({"error": first_error(form)}), 400

    reply = get_services().chatbot.respond(form.message.data, form.id.data or None)
    return jsonify({"reply": reply})
