"""Flask HTTP front-end for voxlate."""

from __future__ import annotations

import logging
import math
import os
import time
from typing import Any

from flask import Blueprint, Flask, Response, current_app, jsonify, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from voxlate_core import Settings, load_settings
from voxlate_core.languages import SUPPORTED_LANGUAGES
from voxlate_core.pipeline import (
    AudioUpload,
    PipelineError,
    RequestPipeline,
    client_key_from_headers,
)

LOGGER = logging.getLogger(__name__)

# Multipart framing overhead allowed on top of the audio size limit.
FORM_OVERHEAD_BYTES = 1024 * 1024

API = Blueprint("api", __name__, url_prefix="/api")


def create_app(config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)
    app.config.update(
        VOXLATE_ENABLE_CORS=False,
        VOXLATE_CORS_ORIGIN="*",
    )
    if config:
        app.config.update(config)

    settings = app.config.get("VOXLATE_SETTINGS")
    if not isinstance(settings, Settings):
        settings = load_settings()
        app.config["VOXLATE_SETTINGS"] = settings
        LOGGER.info("Loaded settings for web API")
    if app.config.get("MAX_CONTENT_LENGTH") is None:
        app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes + FORM_OVERHEAD_BYTES

    pipeline = app.config.get("VOXLATE_PIPELINE")
    if not isinstance(pipeline, RequestPipeline):
        pipeline = RequestPipeline.from_settings(settings)
    app.extensions["voxlate_pipeline"] = pipeline

    app.register_blueprint(API)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(_exc: RequestEntityTooLarge):
        return json_error("payload_too_large", "Uploaded file is too large", 413)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        code = (exc.name or "error").lower().replace(" ", "_")
        return json_error(code, exc.description or exc.name, exc.code or 500)

    @app.after_request
    def apply_cors_headers(response: Response) -> Response:
        if app.config.get("VOXLATE_ENABLE_CORS"):
            response.headers.setdefault("Access-Control-Allow-Origin", app.config["VOXLATE_CORS_ORIGIN"])
            response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
            response.headers.setdefault("Access-Control-Allow-Methods", "GET,POST,OPTIONS")
        return response

    return app


@API.get("/health")
def health() -> Response:
    return jsonify({"ok": True})


@API.get("/languages")
def languages() -> Response:
    return jsonify({"languages": list(SUPPORTED_LANGUAGES)})


@API.post("/transcribe")
def api_transcribe():
    client_key = client_key_from_headers(request.headers)
    LOGGER.info("Received transcription request from %s", client_key)

    pipeline = current_pipeline()
    start = time.perf_counter()
    try:
        pipeline.admit(client_key)
        # The body is parsed only after admission; oversized bodies raise
        # RequestEntityTooLarge here and the request stays charged.
        upload = _read_upload()
        target_lang = request.form.get("target_lang")
        segments = pipeline.process(client_key, upload, target_lang)
    except PipelineError as exc:
        response, status = json_error(exc.kind.code, exc.message, exc.status)
        if exc.retry_after is not None:
            response.headers["Retry-After"] = str(max(1, math.ceil(exc.retry_after)))
        return response, status

    LOGGER.info(
        "Handled /api/transcribe upload: bytes=%d, latency=%.2fs",
        len(upload.data) if upload else 0,
        time.perf_counter() - start,
    )
    return jsonify({"segments": [segment.to_mapping() for segment in segments]})


def current_pipeline() -> RequestPipeline:
    return current_app.extensions["voxlate_pipeline"]


def json_error(code: str, message: str, status: int):
    payload = {"error": message, "code": code}
    return jsonify(payload), status


def _read_upload() -> AudioUpload | None:
    audio_file = request.files.get("file")
    if audio_file is None:
        return None
    return AudioUpload(
        data=audio_file.read(),
        filename=audio_file.filename,
        mimetype=audio_file.mimetype,
    )


def main(host: str | None = None, port: int | None = None) -> int:
    """Run the development server."""
    try:
        app = create_app()
    except Exception as exc:
        LOGGER.error("Failed to start web API: %s", exc)
        return 1
    app.run(
        host=host or os.environ.get("VOXLATE_HOST", "127.0.0.1"),
        port=port or int(os.environ.get("VOXLATE_PORT", "8080")),
        threaded=True,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
