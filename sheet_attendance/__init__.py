"""Application factory and blueprint registration."""

import importlib
import inspect
import logging
import pkgutil

from flask import Blueprint, Flask, jsonify

from .config import Config
from .integrations import EXTENSION_KEY, SheetServices
from .utils.logger import init_logging


def create_app(config=None, services=None) -> Flask:
    """Create and configure the Flask application.

    ``config`` overrides values from :class:`Config`; ``services`` replaces
    the Google-backed services (tests pass fakes here).
    """

    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    app.config.setdefault("STUDENTS_SHEET", "Students")
    app.config.setdefault("DEFAULT_RANGE", "A1:Z1000")

    # Initialise logging with a fallback so deploys never fail on logging
    try:
        init_logging(app)
    except Exception:  # pragma: no cover - only hit during catastrophic logging failure
        logging.basicConfig(level=logging.INFO)
        app.logger.exception("init_logging failed; using basic logging fallback")

    if services is None:
        services = SheetServices.from_config(app.config).init()
    app.extensions[EXTENSION_KEY] = services
    app.logger.info(
        "Sheet services ready",
        extra={
            "spreadsheet_id": services.client.spreadsheet_id,
            "signed_in": services.auth.is_signed_in(),
            "accessible": services.client.is_accessible,
        },
    )

    @app.get("/healthz")
    def healthz():
        """Lightweight liveness probe."""

        return "ok", 200

    # Blueprint auto-discovery ---------------------------------------------
    def register_all_blueprints() -> None:
        base_pkg = f"{__name__}.routes"
        try:
            pkg = importlib.import_module(base_pkg)
        except Exception as exc:
            app.logger.warning("Could not import %s: %s", base_pkg, exc)
            return

        for modinfo in pkgutil.iter_modules(pkg.__path__):
            name = f"{base_pkg}.{modinfo.name}"
            try:
                module = importlib.import_module(name)
            except Exception as exc:
                app.logger.warning("Skipping %s (import error): %s", name, exc)
                continue

            blueprints = [
                obj
                for _, obj in inspect.getmembers(module)
                if isinstance(obj, Blueprint)
            ]
            if not blueprints:
                continue

            url_prefix = getattr(module, "URL_PREFIX", None)
            for bp in blueprints:
                prefix = url_prefix or f"/{modinfo.name}"
                try:
                    app.register_blueprint(bp, url_prefix=prefix)
                    app.logger.info("Registered %s at %s", bp.name, prefix)
                except Exception as exc:
                    app.logger.warning("Failed registering %s at %s: %s", bp.name, prefix, exc)

    register_all_blueprints()

    # Minimal error handlers -----------------------------------------------
    @app.errorhandler(404)
    def _handle_404(error):
        return jsonify({"error": "Not Found"}), 404

    @app.errorhandler(500)
    def _handle_500(error):
        app.logger.exception("500: %s", error)
        return jsonify({"error": "Internal Server Error"}), 500

    return app
