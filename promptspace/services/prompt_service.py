from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from ..errors import BadRequest, ParseError, PromptSpaceError, InternalError, SyncError
from ..models.prompt import PromptMetadata
from ..utils import get_prompt_folder_name
from .repository import RepositorySynchronizer
from .store import PromptStore

log = structlog.get_logger()

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"


@dataclass
class UploadResult:
    folder: str
    filename: str
    action: str
    commit_message: str
    commit: str


@dataclass
class ListingResult:
    prompts: List[Dict[str, Any]] = field(default_factory=list)
    refreshed: bool = True
    skipped: List[str] = field(default_factory=list)


def build_commit_message(action: str, metadata: PromptMetadata) -> str:
    if action == ACTION_UPDATED:
        return f"Chore: Updating prompt {metadata.name} by {metadata.author}"
    return f"Feat: Adding new prompt {metadata.name} by {metadata.author}"


def upload_prompt(
    store: PromptStore,
    synchronizer: RepositorySynchronizer,
    metadata: PromptMetadata,
    upload_path,
    filename: Optional[str],
    prune_stale: bool = False,
) -> UploadResult:
    """
    Create or update a prompt entry and publish it to the remote.

    ``upload_path`` is the temporary file the multipart body was spooled to;
    it is moved into the prompt folder as ``filename``. An existing folder
    for the same name/author means an update, otherwise a create. Nothing is
    rolled back on failure: files written before a failed push stay on disk
    until the next refresh resets them.
    """
    if upload_path is None or not filename:
        raise BadRequest("No file uploaded")
    filename = store.artifact_name(filename)

    folder_name = get_prompt_folder_name(metadata.name, metadata.author)
    folder = store.folder_path(folder_name)

    try:
        with synchronizer.exclusive():
            if folder.is_dir():
                action = ACTION_UPDATED
            else:
                action = ACTION_CREATED
                store.ensure_folder(folder_name)
            commit_message = build_commit_message(action, metadata)

            store.place_artifact(upload_path, folder, filename)
            if prune_stale and action == ACTION_UPDATED:
                store.prune_artifacts(folder, keep=filename)
            store.write_metadata(folder, metadata.to_dict())

            commit = synchronizer.publish(folder, commit_message)
    except PromptSpaceError:
        raise
    except Exception as e:
        log.exception("prompt.upload_failed", folder=folder_name)
        raise InternalError(f"Failed to store prompt {folder_name}: {e}") from e

    log.info("prompt.uploaded", folder=folder_name, action=action, commit=commit)
    return UploadResult(
        folder=folder_name,
        filename=filename,
        action=action,
        commit_message=commit_message,
        commit=commit,
    )


def refresh(synchronizer: RepositorySynchronizer) -> bool:
    """Bring the working copy up to date. A failure is only a warning."""
    try:
        synchronizer.ensure_up_to_date()
        return True
    except SyncError as e:
        log.warning("listing.refresh_failed", error=str(e))
        return False


def scan_prompts(store: PromptStore) -> ListingResult:
    """Parse every metadata sidecar on disk, skipping the ones that fail."""
    result = ListingResult()
    for path in store.iter_metadata_files():
        try:
            result.prompts.append(store.read_metadata(path))
        except ParseError as e:
            log.error("listing.parse_failed", path=e.path, error=str(e))
            result.skipped.append(Path(path).relative_to(store.root).as_posix())
    return result


def list_prompts(store: PromptStore, synchronizer: RepositorySynchronizer, refresh_first: bool = True) -> ListingResult:
    """
    Refresh the working copy (best effort) and return every stored prompt's metadata.

    The scan runs whether or not the refresh worked, so a broken remote
    gives a possibly stale listing rather than an error.
    """
    with synchronizer.exclusive():
        refreshed = refresh(synchronizer) if refresh_first else False
        result = scan_prompts(store)
    result.refreshed = refreshed
    log.info("listing.completed", count=len(result.prompts), skipped=len(result.skipped), refreshed=refreshed)
    return result
