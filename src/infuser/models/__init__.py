"""
Infuser data model: clients, their identities and jobs.
"""

from .client import Client, Identity, Persisted, Transient
from .job import AssignedClient, Job, CLIENTS_COLLECTION

__all__ = [
    'Client',
    'Identity',
    'Persisted',
    'Transient',
    'AssignedClient',
    'Job',
    'CLIENTS_COLLECTION',
]
