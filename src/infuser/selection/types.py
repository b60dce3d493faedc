from typing import Dict, NamedTuple, Optional

from ..models.client import Client

# priority -> {client: active job count, None when unknown}
GroupedClients = Dict[int, Dict[Client, Optional[int]]]


class Selection(NamedTuple):
    """Client picked for the next job, with its load before the assignment."""
    client: Client
    current_count: int
    max_capacity: int
