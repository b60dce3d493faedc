"""
Infuser

Assigns incoming jobs to worker clients of a processing farm using priority
tiers, availability and current load.

This module provides:
- Data model for clients and jobs
- Priority grouping and eligibility selection
- SQLite client/job store with load aggregation
- YAML configuration and a buffered run log
- Job dispatcher tying the pieces together
"""

from .errors import InfuserError, MissingIdentityError, NoEligibleClientError
from .models import AssignedClient, Client, Job, Persisted, Transient
from .selection import Selection, get_eligible_client, group_clients, select
from .store import SQLiteStore
from .config import InfuserConfig, read_config
from .log import LogMode, RunLog
from .infuser import DuplicateJobError, JobDispatcher

__version__ = "1.0.0"

__all__ = [
    # Selection
    "select",
    "group_clients",
    "get_eligible_client",
    "Selection",
    # Data model
    "Client",
    "Job",
    "AssignedClient",
    "Persisted",
    "Transient",
    # Errors
    "InfuserError",
    "NoEligibleClientError",
    "MissingIdentityError",
    "DuplicateJobError",
    # Integration
    "SQLiteStore",
    "InfuserConfig",
    "read_config",
    "RunLog",
    "LogMode",
    "JobDispatcher",
]
