from flask import current_app

from .services.repository import RepositorySynchronizer
from .services.store import PromptStore

EXTENSION_KEY = "promptspace"


class PromptSpace:
    """Per-app handle on the shared working copy: its store and its synchronizer."""

    def __init__(self, store: PromptStore, synchronizer: RepositorySynchronizer):
        self.store = store
        self.synchronizer = synchronizer

    @classmethod
    def from_config(cls, cfg) -> "PromptSpace":
        return cls(
            store=PromptStore(cfg["LOCAL_REPO_PATH"]),
            synchronizer=RepositorySynchronizer.from_config(cfg),
        )

    def init_app(self, app):
        app.extensions[EXTENSION_KEY] = self
        return self


def get_promptspace() -> PromptSpace:
    return current_app.extensions[EXTENSION_KEY]
