"""Administrator authentication blueprint."""
from flask import Blueprint, jsonify
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Length

from utils.forms import ApiForm, first_error, request_formdata, strip_filter
from utils.services import get_services

auth_bp = Blueprint("auth", __name__)


class LoginForm(ApiForm):
    email = StringField(
        "Email",
        filters=[strip_filter],
        validators=[DataRequired(message="email and password required"), Length(max=255)],
    )
    password = PasswordField("Password", validators=[DataRequired(message="email and password required")])


@auth_bp.route("/login", methods=["POST"])
def login():
    form = LoginForm(formdata=request_formdata())
    if not form.validate():
        return jsonify({"error": first_error(form)}), 400

    # InvalidCredentials propagates to the app-level handler as a 401.
    token = get_services().auth.login(form.email.data, form.password.data)
    return jsonify({"token": token})
