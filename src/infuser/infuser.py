"""
Infuser - job dispatch integration

Wires the pieces together for one job submission:

    Client source ─┐
                   ├→ group_clients → get_eligible_client → Job → Assignment recorder
    Load source ───┘                                           ↓
                                                             RunLog

The selection engine only sees a snapshot of clients and load counts. The
dispatcher holds a lock across fetch, select and insert, so submissions made
through the same dispatcher never race each other. Other processes writing
to the same store still can.
"""

import logging
import threading
from typing import Iterable, List, Optional, Tuple

from .config import InfuserConfig
from .errors import InfuserError, NoEligibleClientError
from .log import LogMode, RunLog
from .models import AssignedClient, Client, Job
from .selection import Selection, group_clients, get_eligible_client
from .store import JobStore

logger = logging.getLogger(__name__)


class DuplicateJobError(InfuserError):
    """A job with the same source path is already stored."""


class JobDispatcher:
    """
    Assigns new jobs to clients and records the assignment.

    Example:
        store = SQLiteStore(config.db_path)
        dispatcher = JobDispatcher(store, config)
        job_id, selection = dispatcher.submit("Title", "/media/title.ts", "Episode 1")
    """

    def __init__(
        self,
        store: JobStore,
        config: Optional[InfuserConfig] = None,
        run_log: Optional[RunLog] = None
    ):
        """
        Args:
            store: Client registry, load source and assignment recorder
            config: Settings, defaults when omitted
            run_log: Run log to write outcomes to, a new one when omitted
        """
        self.store = store
        self.config = config or InfuserConfig()
        self.run_log = run_log or RunLog(f"infuser dispatch ({self.config.default_client})")
        self._lock = threading.RLock()

        self._submitted = 0
        self._rejected = 0

    def register_client(self, name: Optional[str] = None, **attrs) -> Client:
        """
        Add a client unless one with the same name is already stored.

        Args:
            name: Client name, config.default_client when omitted
            **attrs: Other Client attributes (maximum_jobs, priority, ...)

        Returns:
            The stored client
        """
        name = name or self.config.default_client
        with self._lock:
            existing = self.store.get_client_by_name(name)
            if existing is not None:
                logger.info(f"Client {name} already registered with id {existing.id}")
                return existing
            return self.store.add_client(Client(name=name, **attrs))

    def choose_client(self, excluded: Iterable[Client] = ()) -> Selection:
        """
        Pick a client from the current store snapshot.

        Raises:
            NoEligibleClientError: If no client qualifies
        """
        with self._lock:
            clients = self.store.get_clients()
            load_counts = self.store.get_load_counts()
            grouped = group_clients(clients, load_counts)
            return get_eligible_client(grouped, excluded)

    def submit(
        self,
        name: str,
        path: str,
        subtitle: str,
        custom_parameters: Optional[List[str]] = None,
        excluded: Iterable[Client] = ()
    ) -> Tuple[int, Selection]:
        """
        Assign a new job to a client and store it.

        Args:
            name: Job title
            path: Source path, must not already be stored
            subtitle: Secondary title
            custom_parameters: Extra parameters for the client
            excluded: Clients that must not receive this job

        Returns:
            (job id, selection the job was assigned by)

        Raises:
            DuplicateJobError: If a job with this path exists
            NoEligibleClientError: If no client qualifies
        """
        with self._lock:
            if self.store.job_exists(path):
                self._rejected += 1
                self.run_log.add(f"skipped {path}: job already exists")
                raise DuplicateJobError(f"a job for {path} already exists")

            try:
                selection = self.choose_client(excluded)
            except NoEligibleClientError:
                self._rejected += 1
                self.run_log.add(f"no eligible client for {path}")
                raise

            job = Job(
                name=name,
                path=path,
                subtitle=subtitle,
                assigned_client=AssignedClient.for_client(selection.client, self.config.db_name),
                custom_parameters=list(custom_parameters or []),
            )
            job_id = self.store.insert_job(job)
            self._submitted += 1

            self.run_log.add(
                f"assigned {name} ({path}) to {selection.client.name} "
                f"[{selection.current_count + 1}/{selection.max_capacity}] as job {job_id}"
            )
        return job_id, selection

    def flush_log(self, mode: LogMode = LogMode.APPEND) -> None:
        """Write the run log to config.log_path."""
        self.run_log.flush(self.config.log_path, mode)

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "submitted": self._submitted,
                "rejected": self._rejected,
                "store": self.store.get_stats(),
            }
