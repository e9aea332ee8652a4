"""Complaint submission, tracking, and administrator triage endpoints."""
import math

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user
from flask_wtf.file import FileAllowed, FileField
from wtforms import FloatField, StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, NumberRange, Optional
from wtforms.validators import ValidationError as FieldValidationError

from models import COMPLAINT_STATUSES
from utils.decorators import admin_required
from utils.forms import ApiForm, first_error, request_formdata, strip_filter
from utils.services import get_services
from utils.storage import ALLOWED_IMAGE_EXTENSIONS

complaints_bp = Blueprint("complaints", __name__)

MAX_DESCRIPTION_LENGTH = 5000


def finite_number(form, field):
    if field.data is not None and not math.isfinite(field.data):
        raise FieldValidationError(f"{field.name} must be a finite number")


class ComplaintForm(ApiForm):
    description = TextAreaField(
        "Description",
        filters=[strip_filter],
        validators=[DataRequired(message="description required"), Length(max=MAX_DESCRIPTION_LENGTH)],
    )
    email = StringField("Email", filters=[strip_filter], validators=[Optional(), Length(max=255)])
    lat = FloatField(
        "Latitude",
        validators=[Optional(), finite_number, NumberRange(min=-90, max=90, message="lat must be between -90 and 90")],
    )
    lng = FloatField(
        "Longitude",
        validators=[Optional(), finite_number, NumberRange(min=-180, max=180, message="lng must be between -180 and 180")],
    )
    photo = FileField(
        "Photo",
        validators=[FileAllowed(sorted(ALLOWED_IMAGE_EXTENSIONS), "Invalid file type. Only jpg, png, gif, webp allowed.")],
    )


class StatusForm(ApiForm):
    status = StringField(
        "Status",
        filters=[strip_filter],
        validators=[
            DataRequired(message="status required"),
            AnyOf(COMPLAINT_STATUSES, message=f"status must be one of: {', '.join(COMPLAINT_STATUSES)}"),
        ],
    )


@complaints_bp.route("", methods=["POST"])
def submit_complaint():
    form = ComplaintForm(formdata=request_formdata())
    if not form.validate():
        return jsonify({"error": first_error(form)}), 400

    complaint = get_services().complaints.submit(
        form.description.data,
        email=form.email.data,
        lat=form.lat.data,
        lng=form.lng.data,
        photo=form.photo.data,
    )
    return jsonify(complaint.to_dict())


@complaints_bp.route("", methods=["GET"])
@admin_required
def list_complaints():
    limit = request.args.get("limit", type=int)
    complaints = get_services().complaints.list_complaints(limit)
    return jsonify([complaint.to_dict() for complaint in complaints])


@complaints_bp.route("/<string:complaint_id>", methods=["GET"])
def get_complaint(complaint_id):
    complaint = get_services().complaints.get(complaint_id)
    return jsonify(complaint.to_dict())


@complaints_bp.route("/<string:complaint_id>/status", methods=["PUT"])
@admin_required
def update_status(complaint_id):
    form = StatusForm(formdata=request_formdata())
    if not form.validate():
        return jsonify({"error": first_error(form)}), 400

    complaint = get_services().complaints.set_status(complaint_id, form.status.data)
    current_app.logger.info(
        "Status updated by administrator",
        extra={"complaint_id": complaint.id, "user_id": current_user.id},
    )
    return jsonify(complaint.to_dict())
