"""Application entry point for the Discord interaction router."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

import structlog
from flask import Flask, Response, jsonify, request
from sqlalchemy import text
from structlog.contextvars import bind_contextvars, unbind_contextvars
from werkzeug.exceptions import HTTPException

from interaction_router.background import BackgroundTasks, get_background_tasks
from interaction_router.commands import build_default_registry
from interaction_router.config import get_settings
from interaction_router.db import init_db, session_scope
from interaction_router.discord_client import DiscordClient
from interaction_router.dispatcher import Dispatcher
from interaction_router.logging_config import configure_logging
from interaction_router.registry import HandlerRegistry
from interaction_router.security import DISCORD_SIGNATURE_HEADER, DISCORD_TIMESTAMP_HEADER
from interaction_router.store import CallbackStore, SqlCallbackStore

_LOGGING_CONFIGURED = False


def _load_version() -> str:
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


def _register_error_handlers(flask_app: Flask) -> None:
    """Register JSON/text error handlers; unmatched routes answer 404."""

    @flask_app.errorhandler(404)
    @flask_app.errorhandler(405)
    def handle_not_found(_error):
        return Response("Not Found.", status=404, mimetype="text/plain")

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        if isinstance(error, HTTPException):
            return error

        trace_id = str(uuid4())

        flask_app.logger.exception(
            "Unhandled application error", extra={"trace_id": trace_id}, exc_info=error
        )

        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def create_app(
    *,
    registry: HandlerRegistry | None = None,
    store: CallbackStore | None = None,
    client: DiscordClient | None = None,
    tasks: BackgroundTasks | None = None,
) -> Flask:
    """Create and configure the Flask application."""

    global _LOGGING_CONFIGURED

    settings = get_settings()
    if not _LOGGING_CONFIGURED:
        configure_logging(dev=settings.is_dev)
        _LOGGING_CONFIGURED = True

    if store is None:
        init_db()
        store = SqlCallbackStore()

    dispatcher = Dispatcher(
        registry=registry or build_default_registry(),
        store=store,
        settings=settings,
        client=client or DiscordClient(token=settings.bot_token, application_id=settings.application_id),
        tasks=tasks or get_background_tasks(),
    )

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.extensions["dispatcher"] = dispatcher
    flask_app.logger.setLevel("INFO")

    _register_error_handlers(flask_app)

    @flask_app.route("/", methods=["GET"])
    def liveness():
        return Response(f"👋 {settings.application_id}", mimetype="text/plain")

    @flask_app.route("/", methods=["POST"])
    def interactions():
        trace_id = str(uuid4())
        bind_contextvars(trace_id=trace_id)
        try:
            result = dispatcher.handle(
                request.get_data(),
                signature=request.headers.get(DISCORD_SIGNATURE_HEADER),
                timestamp=request.headers.get(DISCORD_TIMESTAMP_HEADER),
                trace_id=trace_id,
            )
        finally:
            unbind_contextvars("trace_id")

        response = jsonify(result.body)
        response.status_code = result.status
        if result.deferred is not None:
            # Runs once the WSGI server has finished sending the reply.
            response.call_on_close(result.deferred.schedule)
            structlog.get_logger().bind(trace_id=trace_id).info("deferred_work_registered")
        return response

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        health["application_id"] = settings.application_id
        health["deferred_pending"] = dispatcher.tasks.pending

        if isinstance(dispatcher.store, SqlCallbackStore):
            try:
                with session_scope() as session:
                    session.execute(text("SELECT 1"))
                health["db"] = "up"
            except Exception as exc:
                health["db"] = "down"
                health["db_error"] = str(exc)
                health["ok"] = False

        status = 200 if health["ok"] else 503
        return jsonify(health), status

    return flask_app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    application = create_app()
    application.run(host="0.0.0.0", port=8787, debug=True)
