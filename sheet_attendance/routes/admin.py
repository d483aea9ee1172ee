from flask import Blueprint, current_app, jsonify, request

from . import services

URL_PREFIX = "/admin"
bp = Blueprint("admin", __name__)


@bp.get("/access")
def access():
    current_app.logger.info(
        "Spreadsheet access check requested", extra={"remote_addr": request.remote_addr}
    )
    ok = services().client.check_access()
    return jsonify({"ok": ok, "spreadsheetId": services().client.spreadsheet_id})


@bp.get("/session")
def session_state():
    auth = services().auth
    return jsonify({"signedIn": auth.is_signed_in(), "account": auth.account})
