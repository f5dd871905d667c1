import re
from datetime import datetime, timezone

_WHITESPACE_RUN = re.compile(r"\s+")


def get_prompt_folder_name(name: str, author: str) -> str:
    """
    Derive the folder key that identifies a prompt entry.

    The key is ``"<name>-<author>"`` with every run of whitespace (spaces,
    tabs, newlines) collapsed into a single underscore. Case is preserved and
    nothing is trimmed, so ``" a"`` and ``"a"`` give different keys.
    """
    return _WHITESPACE_RUN.sub("_", f"{name or ''}-{author or ''}")


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
