from __future__ import annotations

from typing import Any, Dict

from flask import current_app, jsonify, request

from ..extensions import db
from ..services import character_generation
from ..services.backups import (
    delete_backup,
    list_backups,
    load_backup,
    rename_backup,
    save_backup,
)
from ..services.document_builder import build_character_document
from ..services.errors import (
    BackupNotFoundError,
    CharacterServiceError,
    InvalidCharacterDataError,
    MalformedResponseError,
    MissingCredentialError,
    MissingInputError,
    UpstreamGenerationError,
)
from ..services.knowledge import (
    UploadedFile,
    append_knowledge,
    extract_knowledge,
    parse_knowledge_list,
)
from . import bp
from .forms import CharacterForm, editor_formdata

API_KEY_HEADER = "X-API-Key"

_ERROR_STATUS = (
    (MissingInputError, 400),
    (MissingCredentialError, 400),
    (MalformedResponseError, 422),
    (InvalidCharacterDataError, 422),
    (UpstreamGenerationError, 502),
    (BackupNotFoundError, 404),
)


def _error_response(message: str, status: int):
    return jsonify({"error": message}), status


def _service_error_response(exc: CharacterServiceError):
    status = next((code for error_cls, code in _ERROR_STATUS if isinstance(exc, error_cls)), 500)
    payload: Dict[str, Any] = {"error": str(exc)}
    if isinstance(exc, InvalidCharacterDataError):
        payload["missingFields"] = exc.missing_fields
    return jsonify(payload), status


def _json_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


@bp.route("/fix-json", methods=["POST"])
def fix_json():
    payload = _json_payload()

    try:
        character = character_generation.fix_json(payload.get("content"))
    except CharacterServiceError as exc:
        current_app.logger.warning("JSON fixing error: %s", exc)
        return _service_error_response(exc)

    return jsonify({"character": character.to_dict()})


@bp.route("/generate-character", methods=["POST"])
def generate_character():
    payload = _json_payload()
    api_key = request.headers.get(API_KEY_HEADER, "")

    try:
        result = character_generation.generate_character(payload.get("prompt"), payload.get("model"), api_key)
    except CharacterServiceError as exc:
        current_app.logger.warning("Character generation error: %s", exc)
        return _service_error_response(exc)
    except Exception:  # pragma: no cover - unexpected failure
        current_app.logger.exception("Unexpected error during character generation")
        return _error_response("Failed to generate character", 500)

    return jsonify(
        {
            "character": result.character.to_dict(),
            "rawPrompt": result.prompt,
            "rawResponse": result.raw_response,
        }
    )


@bp.route("/refine-character", methods=["POST"])
def refine_character():
    payload = _json_payload()
    api_key = request.headers.get(API_KEY_HEADER, "")

    try:
        result = character_generation.refine_character(
            payload.get("prompt"),
            payload.get("model"),
            api_key,
            payload.get("currentCharacter"),
        )
    except CharacterServiceError as exc:
        current_app.logger.warning("Character refinement error: %s", exc)
        return _service_error_response(exc)
    except Exception:  # pragma: no cover - unexpected failure
        current_app.logger.exception("Unexpected error during character refinement")
        return _error_response("Failed to refine character", 500)

    return jsonify(
        {
            "character": result.character.to_dict(),
            "rawPrompt": result.prompt,
            "rawResponse": result.raw_response,
        }
    )


@bp.route("/process-files", methods=["POST"])
def process_files():
    uploads = [upload for upload in request.files.getlist("files") if upload and upload.filename]
    if not uploads:
        return _error_response("No files uploaded", 400)

    existing = parse_knowledge_list(request.form.get("knowledge"))
    if existing is None:
        return _error_response("Existing knowledge must be a JSON list of strings.", 400)

    files = [
        UploadedFile(name=upload.filename, mime_type=upload.mimetype, data=upload.read())
        for upload in uploads
    ]

    try:
        knowledge = extract_knowledge(
            files,
            text_extensions=current_app.config["KNOWLEDGE_TEXT_EXTENSIONS"],
        )
    except Exception:  # pragma: no cover - unexpected failure
        current_app.logger.exception("File processing error")
        return _error_response("Failed to process files", 500)

    return jsonify({"knowledge": knowledge, "combined": append_knowledge(existing, knowledge)})


@bp.route("/build-character", methods=["POST"])
def build_character():
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _error_response("Character fields must be a JSON object.", 400)
        try:
            formdata = editor_formdata(payload)
        except ValueError as exc:
            return jsonify({"error": "Invalid character fields.", "fields": {"payload": [str(exc)]}}), 400
        form = CharacterForm(formdata=formdata, meta={"csrf": False})
    else:
        form = CharacterForm(meta={"csrf": False})

    if not form.validate():
        return jsonify({"error": "Invalid character fields.", "fields": form.errors}), 400

    document = build_character_document(form.to_form_data(), form.parsed_current_knowledge())
    return jsonify({"character": document.to_dict()})


@bp.route("/backups", methods=["GET", "POST"])
def backups():
    if request.method == "GET":
        return jsonify({"backups": [backup.to_dict() for backup in list_backups()]})

    payload = _json_payload()
    data = payload.get("data")
    if not isinstance(data, dict):
        return _error_response("Backup data is required", 400)

    name = payload.get("name")
    backup = save_backup(data, name if isinstance(name, str) else None)
    db.session.commit()
    return jsonify({"backup": backup.to_dict()}), 201


@bp.route("/backups/<name>", methods=["GET", "DELETE"])
def backup_detail(name: str):
    try:
        if request.method == "DELETE":
            delete_backup(name)
            db.session.commit()
            return jsonify({"deleted": name})
        backup = load_backup(name)
    except BackupNotFoundError as exc:
        return _service_error_response(exc)

    return jsonify({"backup": backup.to_dict()})


@bp.route("/backups/<name>/rename", methods=["POST"])
def rename_backup_route(name: str):
    new_name = _json_payload().get("name")
    if not isinstance(new_name, str) or not new_name.strip():
        return _error_response("A new backup name is required", 400)

    try:
        backup = rename_backup(name, new_name)
    except BackupNotFoundError as exc:
        return _service_error_response(exc)

    db.session.commit()
    return jsonify({"backup": backup.to_dict()})

