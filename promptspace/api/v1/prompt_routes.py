import os
import tempfile

import structlog
from flask import request, jsonify, Blueprint, current_app

from promptspace.errors import BadRequest, PromptSpaceError
from promptspace.extensions import get_promptspace
from promptspace.models.prompt import PromptMetadata
from promptspace.services import prompt_service
from promptspace.services.store import PromptStore

log = structlog.get_logger()

prompts_bp = Blueprint("prompts", __name__)

FILE_FIELD = "prompt"


@prompts_bp.route("/upload", methods=["POST"])
def upload_prompt():
    """Upload or update a prompt and push it to the prompt repository.
    ---
    tags:
      - Prompts
    consumes:
      - multipart/form-data
    parameters:
      - in: formData
        name: prompt
        type: file
        required: true
        description: The prompt artifact.
      - in: formData
        name: name
        type: string
      - in: formData
        name: author
        type: string
      - in: formData
        name: description
        type: string
      - in: formData
        name: icon
        type: string
        required: false
    responses:
      200:
        description: Prompt committed and pushed.
        schema:
          type: object
          properties:
            message:
              type: string
            folder:
              type: string
            action:
              type: string
              enum: [created, updated]
            commit:
              type: string
      400:
        description: No file was uploaded.
      500:
        description: Storing, committing or pushing the prompt failed.
    """
    upload = _get_upload()
    if upload is None:
        return _err("No file uploaded", 400)

    try:
        filename = PromptStore.artifact_name(upload.filename)
    except BadRequest as e:
        return _err(e.public_message, 400)

    ps = get_promptspace()
    metadata = PromptMetadata.from_form(request.form)
    tmp_path = None
    try:
        tmp_path = _spool_upload(upload)
        result = prompt_service.upload_prompt(
            ps.store,
            ps.synchronizer,
            metadata,
            tmp_path,
            filename,
            prune_stale=current_app.config.get("PRUNE_STALE_ARTIFACTS", False),
        )
    except BadRequest as e:
        return _err(e.public_message, 400)
    except PromptSpaceError as e:
        log.error("upload.failed", error_type=type(e).__name__, error=str(e))
        return _err("Failed to upload or update prompt", 500)
    except Exception:
        log.exception("upload.unexpected_error")
        return _err("Failed to upload or update prompt", 500)
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)

    return jsonify({
        "message": "Prompt pushed to Git successfully",
        "folder": result.folder,
        "action": result.action,
        "commit": result.commit,
    }), 200


@prompts_bp.route("/prompts/all", methods=["GET"])
def get_all_prompts():
    """List every stored prompt's metadata.
    The working copy is refreshed from the remote first; if that fails the
    listing is built from whatever is currently on disk.
    ---
    tags:
      - Prompts
    responses:
      200:
        description: Metadata objects, one per prompt folder.
        schema:
          type: array
          items:
            type: object
            properties:
              name:
                type: string
              description:
                type: string
              author:
                type: string
              icon:
                type: string
              uploadedAt:
                type: string
                format: date-time
      500:
        description: The listing could not be built.
    """
    ps = get_promptspace()
    try:
        result = prompt_service.list_prompts(ps.store, ps.synchronizer)
    except Exception:
        log.exception("listing.unexpected_error")
        return _err("Failed to fetch prompts", 500)
    return jsonify(result.prompts), 200


def _get_upload():
    """Return the uploaded file part: the `prompt` field, else the first file sent."""
    upload = request.files.get(FILE_FIELD)
    if upload is None and request.files:
        upload = next(iter(request.files.values()))
    if upload is None or not upload.filename:
        return None
    return upload


def _spool_upload(upload):
    """Write the multipart stream to a temporary file and return its path."""
    tmp_dir = current_app.config.get("UPLOAD_TMP_DIR") or tempfile.gettempdir()
    os.makedirs(tmp_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(prefix="upload-", dir=tmp_dir)
    os.close(fd)
    upload.save(path)
    return path


def _err(msg, status=400):
    return jsonify({"error": str(msg)}), status
