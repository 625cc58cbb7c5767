"""Project entity representing one dapp operator's workspace."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple
from uuid import uuid4


def _new_id() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class ProjectDetails:
    """
    Persisted attributes of a project.

    A project is found either by its id or by its api key. The api key is
    a secret and is kept out of the repr so it never lands in logs.
    """

    name: str
    owner_address: str
    allowed_origins: Tuple[str, ...] = ()
    project_id: str = field(default_factory=_new_id)
    api_key: str = field(default_factory=_new_id, repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (without the api key)."""
        return {
            "project_id": self.project_id,
            "name": self.name,
            "owner_address": self.owner_address,
            "allowed_origins": list(self.allowed_origins),
            "created_at": self.created_at.isoformat(),
        }
