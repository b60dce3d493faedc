"""
Infuser Store Module

Client source, load aggregation and assignment recording backed by SQLite.
"""

from .base import AssignmentRecorder, ClientRegistry, ClientSource, JobStore, LoadSource
from .sqlite_store import SQLiteStore

__all__ = [
    'AssignmentRecorder',
    'ClientRegistry',
    'ClientSource',
    'JobStore',
    'LoadSource',
    'SQLiteStore',
]
