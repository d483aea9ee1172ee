from flask import Blueprint, current_app, jsonify, request

from ..integrations.errors import SheetsError, classify_error
from . import services

URL_PREFIX = "/sheets"
bp = Blueprint("sheets", __name__)


@bp.get("/<sheet_name>")
def show(sheet_name: str):
    app = current_app
    cell_range = request.args.get("range") or app.config.get("DEFAULT_RANGE", "A1:Z1000")
    try:
        grid = services().client.fetch_range(sheet_name, cell_range)
    except SheetsError as exc:
        app.logger.exception("Sheet fetch failed", extra={"sheet": sheet_name, "range": cell_range})
        return jsonify({"error": classify_error(exc)}), 502

    app.logger.debug(
        "Sheet fetched",
        extra={"sheet": sheet_name, "rows": len(grid), "from_sample": grid.from_sample},
    )
    return jsonify(
        {
            "sheet": sheet_name,
            "range": cell_range,
            "values": list(grid),
            "fromSample": grid.from_sample,
        }
    )
