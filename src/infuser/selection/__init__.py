"""
Infuser Selection Module

Picks the client that receives the next job from priority tiers, availability
and current load.
"""

from .grouping import group_clients
from .selector import get_eligible_client, select
from .types import GroupedClients, Selection

__all__ = [
    'group_clients',
    'get_eligible_client',
    'select',
    'GroupedClients',
    'Selection',
]
