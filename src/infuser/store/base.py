"""
Interfaces the dispatcher uses to reach the client/job store.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.client import Client
from ..models.job import Job


class ClientSource(ABC):
    """Provides the current list of clients."""

    @abstractmethod
    def get_clients(self) -> List[Client]:
        """Return every known client, unfiltered."""
        pass


class LoadSource(ABC):
    """Provides the number of active jobs per client."""

    @abstractmethod
    def get_load_counts(self) -> Dict[str, int]:
        """
        Count active jobs per client.

        Returns:
            Mapping of client id (as string) to number of assigned jobs.
            Clients without jobs may be missing from the mapping.
        """
        pass


class AssignmentRecorder(ABC):
    """Persists jobs together with their client assignment."""

    @abstractmethod
    def insert_job(self, job: Job) -> int:
        """Store a job and return its new id."""
        pass

    @abstractmethod
    def job_exists(self, path: str) -> bool:
        """Check whether a job for the given source path is already stored."""
        pass


class ClientRegistry(ClientSource):
    """Client source that can also look up and register clients."""

    @abstractmethod
    def add_client(self, client: Client) -> Client:
        """Store a client and return it with its new id."""
        pass

    @abstractmethod
    def get_client_by_name(self, name: str) -> Optional[Client]:
        """Return the first stored client with this name, or None."""
        pass


class JobStore(ClientRegistry, LoadSource, AssignmentRecorder):
    """Everything JobDispatcher needs from a backing store."""

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Return client/job counts and current load counts."""
        pass
