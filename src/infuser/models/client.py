"""
Client model for Infuser.

A client is a worker endpoint that can receive jobs. Clients are compared by
identity: persisted clients by their database id, clients that have not been
stored yet by their name.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class Persisted:
    """Identity of a client that has been stored and received an id."""
    id: int


@dataclass(frozen=True)
class Transient:
    """Identity of a client that has not been stored yet."""
    name: str


Identity = Union[Persisted, Transient]

IDENTITY_FIELDS = ("id", "name")


@dataclass(eq=False)
class Client:
    """
    Worker endpoint eligible to receive jobs.

    Attributes:
        name: Human readable client name (usually the hostname)
        id: Database id, None until the client is persisted
        start: Start of the availability window (opaque, not parsed here)
        end: End of the availability window (opaque, not parsed here)
        maximum_jobs: Maximum number of concurrently assigned jobs
        priority: Priority tier, lower values are evaluated first
        online: Whether the client is currently reachable
        ignore_online: Treat the client as available even when offline

    id and name make up the identity clients are hashed by, so they cannot be
    reassigned once set. Use dataclasses.replace() for a changed copy.
    """
    name: str
    id: Optional[int] = None
    start: str = ""
    end: str = ""
    maximum_jobs: int = 1
    priority: int = 0
    online: bool = False
    ignore_online: bool = False

    def __post_init__(self):
        if self.maximum_jobs < 0:
            raise ValueError(
                f"maximum_jobs must be >= 0, got {self.maximum_jobs} for client {self.name!r}"
            )

    def __setattr__(self, key: str, value: Any) -> None:
        if key in IDENTITY_FIELDS and key in self.__dict__:
            raise AttributeError(f"{key} is part of the client identity and cannot be changed")
        super().__setattr__(key, value)

    @property
    def identity(self) -> Identity:
        if self.is_persisted:
            return Persisted(self.id)
        return Transient(self.name)

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def load_key(self) -> str:
        """Key used to look this client up in a load count mapping."""
        return str(self.id) if self.is_persisted else ""

    def is_available(self) -> bool:
        """Online, or configured to be used regardless of online state."""
        return self.online or self.ignore_online

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Client):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "Name": self.name,
            "Start": self.start,
            "End": self.end,
            "MaximumJobs": self.maximum_jobs,
            "Priority": self.priority,
            "Online": self.online,
            "IgnoreOnline": self.ignore_online,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Client':
        return cls(
            name=data["Name"],
            id=data.get("_id"),
            start=data.get("Start", ""),
            end=data.get("End", ""),
            maximum_jobs=int(data.get("MaximumJobs", 1)),
            priority=int(data.get("Priority", 0)),
            online=bool(data.get("Online", False)),
            ignore_online=bool(data.get("IgnoreOnline", False)),
        )
