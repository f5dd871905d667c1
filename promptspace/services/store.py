import json
import os
import re
import shutil
from pathlib import Path
from typing import Iterator, List

import structlog

from ..errors import BadRequest, ParseError

log = structlog.get_logger()

METADATA_FILENAME = "metadata.json"
VCS_DIRS = (".git",)
DOC_EXTENSIONS = (".md",)


class PromptStore:
    """
    Filesystem side of the prompt tree.

    Every prompt lives in ``<root>/<folder key>/`` next to its
    ``metadata.json`` sidecar. The store knows nothing about git; the
    synchronizer owns the working copy's relationship with the remote.
    """

    def __init__(self, root):
        self.root = Path(root)

    def folder_path(self, folder_name: str) -> Path:
        """
        Resolve a folder key to its directory.

        The key must name a direct child of the root: no path separators, no
        ``.``/``..`` and never the ``.git`` directory.
        """
        if not folder_name or _has_separator(folder_name) or folder_name in (".", "..") \
                or folder_name.lower() in VCS_DIRS:
            raise BadRequest(f"Invalid prompt folder name: {folder_name!r}")
        root = self.root.resolve()
        path = (root / folder_name).resolve()
        if path.parent != root:
            raise BadRequest(f"Invalid prompt folder name: {folder_name!r}")
        return path

    def ensure_folder(self, folder_name: str) -> Path:
        path = self.folder_path(folder_name)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def artifact_name(filename: str) -> str:
        """
        Return the name an uploaded file is stored under.

        Only the last path component of the client's filename is kept; the
        rest is used as-is, Unicode included. Names that would clash with the
        sidecar or git, or that are not a plain file name, are refused.
        """
        name = re.split(r"[\\/]", filename or "")[-1]
        if not name or name in (".", "..") or "\x00" in name \
                or name == METADATA_FILENAME or name.lower() in VCS_DIRS:
            raise BadRequest(f"Invalid file name: {filename!r}")
        return name

    def place_artifact(self, source, folder: Path, filename: str) -> Path:
        """Move an uploaded file into ``folder``, replacing whatever has the same name."""
        dest = Path(folder) / filename
        if dest.is_dir() and not dest.is_symlink():
            shutil.rmtree(dest)
        elif dest.exists() or dest.is_symlink():
            dest.unlink()
        shutil.move(str(source), str(dest))
        log.info("store.artifact_placed", path=str(dest))
        return dest

    def prune_artifacts(self, folder: Path, keep: str) -> List[Path]:
        """Delete every file in ``folder`` except ``keep`` and the metadata sidecar."""
        removed = []
        for entry in sorted(Path(folder).iterdir()):
            if entry.name in (keep, METADATA_FILENAME) or not entry.is_file():
                continue
            entry.unlink()
            removed.append(entry)
        if removed:
            log.info("store.stale_artifacts_removed", folder=str(folder), files=[p.name for p in removed])
        return removed

    def write_metadata(self, folder: Path, metadata: dict) -> Path:
        path = Path(folder) / METADATA_FILENAME
        path.write_text(json.dumps(metadata, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def read_metadata(self, path) -> dict:
        """Parse one sidecar. Raises ParseError for unreadable or non-object content."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(f"Failed to parse {path}: {e}", path=str(path)) from e
        if not isinstance(data, dict):
            raise ParseError(f"Failed to parse {path}: top level is not an object", path=str(path))
        return data

    def iter_metadata_files(self) -> Iterator[Path]:
        """Yield every metadata sidecar under the root, depth first in name order."""
        if not self.root.is_dir():
            log.warning("store.root_missing", path=str(self.root))
            return
        yield from self._walk(self.root)

    def _walk(self, directory: Path) -> Iterator[Path]:
        for entry in sorted(os.scandir(directory), key=lambda e: e.name):
            lowered = entry.name.lower()
            if lowered in VCS_DIRS or lowered.endswith(DOC_EXTENSIONS):
                continue
            if entry.is_dir():
                yield from self._walk(Path(entry.path))
            elif entry.name == METADATA_FILENAME:
                yield Path(entry.path)


def _has_separator(name: str) -> bool:
    return "/" in name or "\\" in name or "\x00" in name
