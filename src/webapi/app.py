import os
from io import BytesIO
from typing import Optional, Type

from flask import Flask, jsonify, request, send_file
from loguru import logger
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import HTTPException

from pydantic_models.data.timecard_request import DeliveryRequest, TimecardRequest
from shared_modules.config import Config
from timecards.modules.errors import ColumnCapacityError, MalformedRequestError, TimecardError
from timecards.modules.output_bundler import OutputBundle
from timecards.modules.timecard_processor import TimecardProcessor


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Ungültige Anfrage: " + "; ".join(parts)


def parse_body(model: Type[BaseModel]) -> BaseModel:
    """JSON-Body gegen das Pydantic-Modell validieren; Fehler werden zu MalformedRequestError."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise MalformedRequestError("Request-Body muss ein JSON-Objekt sein.")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise MalformedRequestError(_validation_message(exc)) from exc


def _file_response(bundle: OutputBundle):
    return send_file(
        BytesIO(bundle.content),
        mimetype=bundle.media_type,
        as_attachment=True,
        download_name=bundle.filename,
    )


def create_app(config: Optional[Config] = None, processor: Optional[TimecardProcessor] = None) -> Flask:
    """
    Baut die Flask-App. Config und Processor sind injizierbar (Tests).
    """
    app = Flask(__name__)
    config = config or Config()
    processor = processor or TimecardProcessor(config)
    app.extensions["timecard_processor"] = processor

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        return response

    @app.errorhandler(TimecardError)
    def handle_timecard_error(exc: TimecardError):
        body = {"error": exc.message}
        if isinstance(exc, ColumnCapacityError) and exc.excess:
            body["excess"] = exc.excess
        log = logger.warning if exc.status_code < 500 else logger.error
        log(f"{request.path} -> {exc.status_code}: {exc.message}")
        return jsonify(body), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description}), exc.code
        logger.exception(f"Unerwarteter Fehler bei {request.path}: {exc}")
        return jsonify({"error": "Interner Fehler"}), 500

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "healthy"})

    @app.route("/api/generate-timecard", methods=["POST"])
    def generate_timecard():
        req = parse_body(TimecardRequest)
        return _file_response(processor.generate(req))

    @app.route("/api/generate-pdf", methods=["POST"])
    def generate_pdf():
        req = parse_body(TimecardRequest)
        return _file_response(processor.generate_document(req))

    @app.route("/api/email-timecard", methods=["POST"])
    def email_timecard():
        req = parse_body(DeliveryRequest)
        receipt = processor.deliver(req)
        return jsonify({"status": "success", "message": receipt.message})

    return app


if __name__ == "__main__":
    config = Config()
    app = create_app(config)
    port = int(os.getenv("PORT", config.server.port))
    logger.info(f"Timecard-API startet auf {config.server.host}:{port}")
    app.run(host=config.server.host, port=port)
