"""
Job model for Infuser.

A job references the client it is assigned to instead of embedding a copy of
it, the same way a document database reference points at another collection.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import MissingIdentityError
from .client import Client

CLIENTS_COLLECTION = "clients"


@dataclass(frozen=True)
class AssignedClient:
    """
    Reference to the client a job is assigned to.

    Attributes:
        id: Id of the referenced client
        collection: Collection (table) holding the client
        database: Optional database qualifier
    """
    id: int
    collection: str = CLIENTS_COLLECTION
    database: Optional[str] = None

    @classmethod
    def for_client(cls, client: Client, database: Optional[str] = None) -> 'AssignedClient':
        """
        Build a reference to a stored client.

        Raises:
            MissingIdentityError: If the client has not been persisted
        """
        if not client.is_persisted:
            raise MissingIdentityError(
                f"client {client.name!r} has no id, a job cannot reference it"
            )
        return cls(id=client.id, database=database)

    def refers_to(self, client: Client) -> bool:
        return client.id is not None and client.id == self.id

    def to_dict(self) -> Dict[str, Any]:
        data = {"$ref": self.collection, "$id": self.id}
        if self.database is not None:
            data["$db"] = self.database
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AssignedClient':
        return cls(
            id=data["$id"],
            collection=data.get("$ref", CLIENTS_COLLECTION),
            database=data.get("$db"),
        )


@dataclass
class Job:
    """
    Unit of work assigned to exactly one client.

    Attributes:
        name: Job title
        path: Source path of the item to process
        subtitle: Secondary title
        assigned_client: Reference to the client the job was assigned to
        custom_parameters: Extra parameters handed to the client verbatim
        id: Database id, None until the job is persisted
    """
    name: str
    path: str
    subtitle: str
    assigned_client: AssignedClient
    custom_parameters: List[str] = field(default_factory=list)
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "Name": self.name,
            "Path": self.path,
            "Subtitle": self.subtitle,
            "AssignedClient": self.assigned_client.to_dict(),
            "CustomParameters": list(self.custom_parameters),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Job':
        return cls(
            name=data["Name"],
            path=data["Path"],
            subtitle=data.get("Subtitle", ""),
            assigned_client=AssignedClient.from_dict(data["AssignedClient"]),
            custom_parameters=list(data.get("CustomParameters", [])),
            id=data.get("_id"),
        )
