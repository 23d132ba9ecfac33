"""The web front end: stream list, stats page and their JSON endpoints."""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Any

from dotenv import load_dotenv
from flask import Flask, Response, render_template, request
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .db import connect
from .stats import get_stats_page_data
from .streams import StreamNotFound, snapshot_history, top_recent_streams

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_FOLDER = "web/templates"
DEFAULT_STATIC_FOLDER = "web/static"
DEFAULT_PORT = 8080
HOME_STREAM_COUNT = 50


def _text_error(message: str, status: int) -> Response:
    response = Response(message + "\n", status=status, mimetype="text/plain")
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def _json(payload: Any) -> Response:
    return Response(json.dumps(payload) + "\n", mimetype="application/json")


def create_app(
    engine: Engine,
    template_folder: str | None = None,
    static_folder: str | None = None,
) -> Flask:
    """Build the application serving pages and data from ``engine``."""
    app = Flask(
        __name__,
        template_folder=os.path.abspath(template_folder or DEFAULT_TEMPLATE_FOLDER),
        static_folder=os.path.abspath(static_folder or DEFAULT_STATIC_FOLDER),
        static_url_path="/static",
    )

    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def home(path: str) -> Any:
        if path == "favicon.ico":
            logger.info("Ignoring request to: /%s", path)
            return ""
        try:
            streams = top_recent_streams(engine, HOME_STREAM_COUNT)
        except SQLAlchemyError as exc:
            logger.error("Error fetching top recent streams: %s", exc)
            return _text_error("Failed to load top recent streams", 500)
        return render_template("index.html", streams=streams)

    @app.route("/api/snapshots")
    def snapshots() -> Response:
        stream_id = request.args.get("stream_id", "")
        if not stream_id:
            return _text_error("Missing stream_id", 400)
        try:
            history = snapshot_history(engine, stream_id)
        except StreamNotFound:
            return _text_error("Could not find streamer", 500)
        except SQLAlchemyError as exc:
            logger.error("Error in retrieving snapshots: %s", exc)
            return _text_error("DB error", 500)
        return _json(history)

    @app.route("/stats")
    def stats_page() -> Any:
        try:
            return render_template("stats.html")
        except Exception as exc:  # template missing or broken
            logger.error("Template error: %s", exc)
            return _text_error("Failed to render stats page", 500)

    @app.route("/api/stats")
    def stats_data() -> Response:
        try:
            data = get_stats_page_data(engine)
        except (SQLAlchemyError, LookupError) as exc:
            logger.error("Error fetching stats: %s", exc)
            return _text_error("Failed to fetch stats", 500)
        return _json(data.to_dict())

    return app


def main(argv: list[str] | None = None) -> int:
    """Start the web server."""
    if not load_dotenv():
        logger.info(".env file not found, using environment variables directly")
    parser = argparse.ArgumentParser(
        prog="streamwatch", description="Serve live stream statistics."
    )
    parser.add_argument("--database-url", help="database URL (default: $DATABASE_URL)")
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument("--templates", default=DEFAULT_TEMPLATE_FOLDER, help="template folder")
    parser.add_argument("--static", default=DEFAULT_STATIC_FOLDER, help="static file folder")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    engine = connect(args.database_url)
    app = create_app(engine, args.templates, args.static)
    logger.info("Server running on http://localhost:%d", args.port)
    app.run(host=args.host, port=args.port)
    return 0