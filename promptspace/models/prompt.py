from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..utils import utc_timestamp


@dataclass
class PromptMetadata:
    """Contents of a prompt folder's ``metadata.json`` sidecar."""

    name: str
    author: str
    description: str = ""
    icon: Optional[str] = None
    uploaded_at: str = field(default_factory=utc_timestamp)

    @classmethod
    def from_form(cls, form) -> "PromptMetadata":
        """Build metadata from submitted form fields. Missing text fields become ''."""
        return cls(
            name=form.get("name") or "",
            author=form.get("author") or "",
            description=form.get("description") or "",
            icon=form.get("icon"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "author": self.author,
        }
        if self.icon is not None:
            data["icon"] = self.icon
        data["uploadedAt"] = self.uploaded_at
        return data

    def __repr__(self):
        return f"<PromptMetadata {self.name!r} by {self.author!r}>"
