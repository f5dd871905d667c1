import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Optional, Union

import structlog
from git import Actor, Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from git.remote import PushInfo

from ..errors import SyncError

log = structlog.get_logger()

_PUSH_FAILURE_FLAGS = PushInfo.ERROR | PushInfo.REJECTED | PushInfo.REMOTE_REJECTED | PushInfo.REMOTE_FAILURE


class RepositorySynchronizer:
    """
    Mediates every read and write between the local working copy and one
    branch of one remote.

    The service assumes it is the only writer to that branch: refreshing is
    a fetch followed by ``reset --hard``, so anything committed locally but
    not pushed is thrown away. All mutating operations run under a single
    re-entrant lock; callers that need a longer atomic sequence (check the
    tree, write files, publish) wrap it in :meth:`exclusive`.
    """

    def __init__(
        self,
        local_path,
        remote_url: Optional[str],
        branch: Optional[str],
        token: Optional[str] = None,
        author_name: str = "PromptSpace Bot",
        author_email: str = "promptspace@localhost",
        remote_name: str = "origin",
    ):
        self.local_path = Path(local_path)
        self.remote_url = remote_url
        self.branch = branch
        self.token = token
        self.remote_name = remote_name
        self.actor = Actor(author_name, author_email)
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, cfg) -> "RepositorySynchronizer":
        return cls(
            local_path=cfg["LOCAL_REPO_PATH"],
            remote_url=cfg.get("GIT_REMOTE_URL"),
            branch=cfg.get("GIT_BRANCH"),
            token=cfg.get("GIT_TOKEN"),
            author_name=cfg.get("GIT_AUTHOR_NAME", "PromptSpace Bot"),
            author_email=cfg.get("GIT_AUTHOR_EMAIL", "promptspace@localhost"),
        )

    @contextmanager
    def exclusive(self):
        """Hold the repository lock for the duration of the block."""
        with self._lock:
            yield self

    # --- Remote helpers ---

    def _redact(self, text) -> str:
        text = str(text)
        if self.token:
            text = text.replace(self.token, "***")
        return text

    def _authenticated_url(self) -> str:
        if not self.token or not self.branch:
            raise SyncError("GIT_TOKEN and GIT_BRANCH must both be configured")
        if not self.remote_url:
            raise SyncError("GIT_REMOTE_URL is not configured")
        return self.remote_url.replace("{token}", self.token)

    def _open(self) -> Repo:
        try:
            return Repo(self.local_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise SyncError(f"{self.local_path} is not a git working copy") from e

    # --- Public operations ---

    def ensure_up_to_date(self) -> None:
        """Clone the branch if the working copy is missing, else force it to the remote tip."""
        url = self._authenticated_url()
        with self._lock:
            try:
                if not self.local_path.exists():
                    log.info("repository.cloning", path=str(self.local_path), branch=self.branch)
                    Repo.clone_from(url, str(self.local_path), branch=self.branch)
                    log.info("repository.cloned", path=str(self.local_path))
                    return

                repo = self._open()
                log.info("repository.refreshing", path=str(self.local_path), branch=self.branch)
                repo.remote(self.remote_name).fetch(self.branch)
                repo.git.reset("--hard", f"{self.remote_name}/{self.branch}")
                log.info("repository.reset", head=repo.head.commit.hexsha)
            except (GitCommandError, ValueError) as e:
                log.error("repository.sync_failed", error=self._redact(e))
                raise SyncError(f"Failed to synchronize {self.local_path}: {self._redact(e)}") from e

    def publish(self, paths: Union[str, Path, Iterable[Union[str, Path]]], commit_message: str) -> str:
        """Stage ``paths``, commit them and push to the configured branch. Returns the commit SHA."""
        self._authenticated_url()
        if isinstance(paths, (str, Path)):
            paths = [paths]
        with self._lock:
            repo = self._open()
            rel_paths = [self._relative(p) for p in paths]
            try:
                repo.git.add("--all", "--", *rel_paths)
                commit = repo.index.commit(commit_message, author=self.actor, committer=self.actor)
                log.info("repository.committed", commit=commit.hexsha, message=commit_message)

                results = repo.remote(self.remote_name).push(refspec=f"HEAD:refs/heads/{self.branch}")
            except (GitCommandError, ValueError) as e:
                log.error("repository.publish_failed", error=self._redact(e), message=commit_message)
                raise SyncError(f"Failed to publish {rel_paths}: {self._redact(e)}") from e

            failed = [info for info in results if info.flags & _PUSH_FAILURE_FLAGS]
            if not results or failed:
                summary = "; ".join(self._redact(info.summary).strip() for info in failed) or "no push result"
                log.error("repository.push_rejected", summary=summary, commit=commit.hexsha)
                raise SyncError(f"Push to {self.branch} was rejected: {summary}")

            log.info("repository.pushed", commit=commit.hexsha, branch=self.branch)
            return commit.hexsha

    def _relative(self, path) -> str:
        path = Path(path)
        if not path.is_absolute():
            return str(path)
        return str(path.resolve().relative_to(self.local_path.resolve()))
