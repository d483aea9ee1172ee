"""Shared helpers for the JSON blueprints."""

from flask import current_app, jsonify

from ..integrations import get_services
from ..integrations.writer import Applied, Failed

FAILED_STATUS = {"not_found": 404, "auth": 401, "permission": 403}


def services():
    return get_services(current_app)


def outcome_response(outcome, message: str = "", created: bool = False):
    """Translate a write outcome into a JSON response.

    Simulated outcomes come back as 202 and their message never says the
    data was saved.
    """
    payload = outcome.to_dict()
    if isinstance(outcome, Failed):
        return jsonify(payload), FAILED_STATUS.get(outcome.kind, 502)
    if message:
        payload["message"] = message
    if isinstance(outcome, Applied):
        return jsonify(payload), 201 if created else 200
    return jsonify(payload), 202
