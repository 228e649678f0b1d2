"""
Session records and their reconciliation.

This package turns raw mini-game telemetry into canonical session records
and merges the device-local cache with the shared remote store:
- models: GameKind, TrialEvent, SessionRecord, ChildProfile
- stores: store interfaces, JSON-file cache, in-memory stores
- reconciliation: fingerprint dedup and recency merge
"""

from .models import (
    GameKind,
    TrialEvent,
    Choice,
    SessionRecord,
    SessionRecordError,
    ChildProfile,
    normalize_child_id,
    parse_sessions
)
from .stores import (
    SessionStore,
    RemoteSessionStore,
    ProfileStore,
    LocalSessionCache,
    InMemorySessionStore,
    InMemoryRemoteStore,
    InMemoryProfileStore
)
from .reconciliation import (
    ReconciledSessions,
    SessionReconciler,
    merge_sessions,
    dedupe_sessions,
    session_fingerprint,
    parse_timestamp
)

__all__ = [
    # Models
    'GameKind',
    'TrialEvent',
    'Choice',
    'SessionRecord',
    'SessionRecordError',
    'ChildProfile',
    'normalize_child_id',
    'parse_sessions',

    # Stores
    'SessionStore',
    'RemoteSessionStore',
    'ProfileStore',
    'LocalSessionCache',
    'InMemorySessionStore',
    'InMemoryRemoteStore',
    'InMemoryProfileStore',

    # Reconciliation
    'ReconciledSessions',
    'SessionReconciler',
    'merge_sessions',
    'dedupe_sessions',
    'session_fingerprint',
    'parse_timestamp',
]
