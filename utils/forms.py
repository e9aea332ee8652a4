"""Form plumbing shared by the JSON API blueprints."""
from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import CombinedMultiDict, ImmutableMultiDict

from utils.errors import ValidationError


def strip_filter(value):
    return value.strip() if isinstance(value, str) else value


class ApiForm(FlaskForm):
    """FlaskForm for bearer-token/public API calls; no CSRF token is involved."""

    class Meta:
        csrf = False


def _scalar(key, value) -> str:
    # bool is an int subclass, so it has to be turned away explicitly.
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(f"{key} must be a string or number")
    return str(value)


def request_formdata():
    """Accept multipart/urlencoded bodies as well as flat JSON objects.

    JSON values must be strings or numbers; nested objects, arrays and
    booleans are rejected with a 400 rather than coerced to text.
    """
    if request.files or request.form:
        return CombinedMultiDict([request.files, request.form])
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return ImmutableMultiDict(
            {key: _scalar(key, value) for key, value in payload.items() if value is not None}
        )
    return ImmutableMultiDict()


def first_error(form) -> str:
    for errors in form.errors.values():
        if errors:
            return errors[0]
    return "invalid request"
