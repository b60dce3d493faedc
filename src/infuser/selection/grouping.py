"""Client priority grouping."""

from typing import Iterable, Mapping

from ..models.client import Client
from .types import GroupedClients


def group_clients(clients: Iterable[Client], load_counts: Mapping[str, int]) -> GroupedClients:
    """
    Partition clients into priority tiers and attach their current load.

    Tiers are returned in ascending priority order. Inside a tier clients keep
    the order in which they were passed in, which is the order the selector
    examines them in.

    Args:
        clients: All known clients
        load_counts: Active job count per client id (as string). Clients
            without an entry get None.

    Returns:
        Mapping of priority -> {client: load count or None}
    """
    tiers: GroupedClients = {}
    for client in clients:
        tiers.setdefault(client.priority, {})[client] = load_counts.get(client.load_key)
    return {priority: tiers[priority] for priority in sorted(tiers)}
