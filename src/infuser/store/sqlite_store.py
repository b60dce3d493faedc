"""
SQLite backed client and job store.

Clients and jobs live in two tables. A job points at its client through the
(assigned_collection, assigned_id, assigned_db) columns, never through an
embedded copy of the client.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..errors import MissingIdentityError
from ..models.client import Client
from ..models.job import AssignedClient, Job
from .base import JobStore

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS clients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    start TEXT NOT NULL DEFAULT '',
    "end" TEXT NOT NULL DEFAULT '',
    maximum_jobs INTEGER NOT NULL DEFAULT 1,
    priority INTEGER NOT NULL DEFAULT 0,
    online INTEGER NOT NULL DEFAULT 0,
    ignore_online INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS jobs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    path TEXT NOT NULL,
    subtitle TEXT NOT NULL DEFAULT '',
    custom_parameters TEXT NOT NULL DEFAULT '[]',
    assigned_collection TEXT NOT NULL DEFAULT 'clients',
    assigned_id INTEGER NOT NULL,
    assigned_db TEXT
);

CREATE INDEX IF NOT EXISTS idx_jobs_path ON jobs(path);
CREATE INDEX IF NOT EXISTS idx_jobs_assigned ON jobs(assigned_id);
"""


class SQLiteStore(JobStore):
    """
    Client/job store on a single SQLite file.

    A fresh connection is opened per operation, so one store instance can be
    shared between threads.
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Initialize the store and create the schema if needed.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = str(db_path)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._transaction() as conn:
            conn.executescript(SCHEMA)
        logger.debug(f"Initialized store at {self.db_path}")

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_client(row: sqlite3.Row) -> Client:
        return Client(
            id=row["id"],
            name=row["name"],
            start=row["start"],
            end=row["end"],
            maximum_jobs=row["maximum_jobs"],
            priority=row["priority"],
            online=bool(row["online"]),
            ignore_online=bool(row["ignore_online"]),
        )

    def add_client(self, client: Client) -> Client:
        """
        Insert a client.

        Args:
            client: Client to store. Its id is ignored and assigned by the
                database.

        Returns:
            The stored client, carrying its new id
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                'INSERT INTO clients (name, start, "end", maximum_jobs, priority, online, ignore_online) '
                'VALUES (?, ?, ?, ?, ?, ?, ?)',
                (
                    client.name,
                    client.start,
                    client.end,
                    client.maximum_jobs,
                    client.priority,
                    int(client.online),
                    int(client.ignore_online),
                ),
            )
            client_id = cursor.lastrowid
        logger.info(f"Added client {client.name} with id {client_id}")
        return self.get_client(client_id)

    def get_client(self, client_id: int) -> Optional[Client]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
        return self._row_to_client(row) if row else None

    def get_client_by_name(self, name: str) -> Optional[Client]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM clients WHERE name = ? ORDER BY id LIMIT 1", (name,)
            ).fetchone()
        return self._row_to_client(row) if row else None

    def get_clients(self) -> List[Client]:
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM clients ORDER BY id").fetchall()
        return [self._row_to_client(row) for row in rows]

    def set_online(self, client_id: int, online: bool) -> bool:
        """
        Update the online flag of a client.

        Returns:
            True if updated, False if the client does not exist
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE clients SET online = ? WHERE id = ?", (int(online), client_id)
            )
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_job(row: sqlite3.Row) -> Job:
        return Job(
            id=row["id"],
            name=row["name"],
            path=row["path"],
            subtitle=row["subtitle"],
            custom_parameters=json.loads(row["custom_parameters"]),
            assigned_client=AssignedClient(
                id=row["assigned_id"],
                collection=row["assigned_collection"],
                database=row["assigned_db"],
            ),
        )

    def insert_job(self, job: Job) -> int:
        """
        Store a job and return its new id.

        Raises:
            MissingIdentityError: If the job's assigned client reference has no id
        """
        if job.assigned_client.id is None:
            raise MissingIdentityError(
                f"job {job.name!r} ({job.path}) does not reference a stored client"
            )
        with self._transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO jobs (name, path, subtitle, custom_parameters, "
                "assigned_collection, assigned_id, assigned_db) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    job.name,
                    job.path,
                    job.subtitle,
                    json.dumps(job.custom_parameters),
                    job.assigned_client.collection,
                    job.assigned_client.id,
                    job.assigned_client.database,
                ),
            )
            job_id = cursor.lastrowid
        logger.info(f"Inserted job {job_id} ({job.name}) for client {job.assigned_client.id}")
        return job_id

    def get_jobs(self) -> List[Job]:
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM jobs ORDER BY id").fetchall()
        return [self._row_to_job(row) for row in rows]

    def job_exists(self, path: str) -> bool:
        with self._connection() as conn:
            row = conn.execute("SELECT 1 FROM jobs WHERE path = ? LIMIT 1", (path,)).fetchone()
        return row is not None

    def get_load_counts(self) -> Dict[str, int]:
        """
        Count jobs per assigned client.

        Raises:
            MissingIdentityError: If a stored job has no assigned client id
        """
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT assigned_id, COUNT(*) AS count FROM jobs GROUP BY assigned_id"
            ).fetchall()

        job_counts: Dict[str, int] = {}
        for row in rows:
            if row["assigned_id"] is None:
                raise MissingIdentityError(
                    f"{row['count']} job(s) in {self.db_path} have no assigned client id"
                )
            job_counts[str(row["assigned_id"])] = row["count"]
        return job_counts

    def get_stats(self) -> Dict[str, Any]:
        with self._connection() as conn:
            clients = conn.execute("SELECT COUNT(*) FROM clients").fetchone()[0]
            jobs = conn.execute("SELECT COUNT(*) FROM jobs").fetchone()[0]
        return {
            "clients": clients,
            "jobs": jobs,
            "load_counts": self.get_load_counts(),
        }
