"""
Eligibility selector.

Walks the priority tiers of a GroupedClients structure and picks the least
loaded available client of the first tier that has one:

- Tiers are evaluated in ascending priority and are strict precedence: the
  first tier that yields a candidate wins, later tiers are never looked at.
- Inside a tier a client is skipped when it is excluded, or offline without
  the ignore_online flag.
- A client with a known load count is a candidate only if the count is below
  both the best count found so far in the tier and its maximum job count.
- A client without a known load count is assumed idle and replaces the current
  candidate with a count of 0, so the last such client in a tier wins.
"""

import logging
import sys
from typing import Iterable, List, Mapping, Optional

from ..errors import NoEligibleClientError
from ..models.client import Client
from .grouping import group_clients
from .types import GroupedClients, Selection

logger = logging.getLogger(__name__)


def get_eligible_client(grouped_clients: GroupedClients,
                        excluded: Iterable[Client] = ()) -> Selection:
    """
    Pick the client that should receive the next job.

    Args:
        grouped_clients: Output of group_clients()
        excluded: Clients that must not be picked, e.g. ones that already
            rejected this job

    Returns:
        Selection with the chosen client, its active job count and its
        maximum job count

    Raises:
        NoEligibleClientError: If no tier contains a qualifying client
    """
    excluded_clients: List[Client] = list(excluded)

    for priority in sorted(grouped_clients):
        job_count = sys.maxsize
        eligible: Optional[Client] = None

        for client, count in grouped_clients[priority].items():
            if client in excluded_clients:
                logger.debug(f"Skipping {client.name}: excluded")
                continue
            if not client.is_available():
                logger.debug(f"Skipping {client.name}: offline")
                continue

            if count is not None:
                if count < job_count and count < client.maximum_jobs:
                    eligible = client
                    job_count = count
                else:
                    logger.debug(
                        f"Skipping {client.name}: {count} jobs "
                        f"(best {job_count}, max {client.maximum_jobs})"
                    )
            elif client.maximum_jobs > 0:
                # No tracked load: idle, overrides any earlier candidate
                eligible = client
                job_count = 0
            else:
                logger.debug(f"Skipping {client.name}: maximum_jobs is 0")

        if eligible is not None:
            logger.info(
                f"Selected client {eligible.name} (priority={priority}, "
                f"jobs={job_count}/{eligible.maximum_jobs})"
            )
            return Selection(eligible, job_count, eligible.maximum_jobs)

        logger.debug(f"No eligible client in priority tier {priority}")

    raise NoEligibleClientError()


def select(clients: Iterable[Client],
           load_counts: Mapping[str, int],
           excluded: Iterable[Client] = ()) -> Selection:
    """
    Group clients and pick one in a single call.

    Args:
        clients: All known clients
        load_counts: Active job count per client id (as string)
        excluded: Clients that must not be picked

    Returns:
        Selection for the chosen client

    Raises:
        NoEligibleClientError: If no client qualifies
    """
    return get_eligible_client(group_clients(clients, load_counts), excluded)
