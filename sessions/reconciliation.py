"""
Session reconciliation across the local cache and the remote store.

Sessions reach a report from two eventually consistent sources. The same
session is usually present in both, and a source may be unreadable on any
given pass. Reconciliation:
1. Reads local sessions and keeps the requesting child's
2. Reads the child's remote sessions
3. Concatenates them, preferred source first (local by default)
4. Drops duplicates by fingerprint (timestamp | game | score); first wins
5. Sorts by timestamp, most recent first

A failing source degrades to "no sessions from that source" for the pass;
nothing here is fatal to report rendering.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .models import ChildProfile, SessionRecord, normalize_child_id
from .stores import ProfileStore, RemoteSessionStore, SessionStore

logger = logging.getLogger(__name__)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ReconciledSessions:
    """
    Result of one reconciliation pass.

    Attributes:
        child_id: Normalized child identifier
        sessions: Deduplicated sessions, most recent first
        local_available: Whether the local cache was readable
        remote_available: Whether the remote store was readable
        duplicates_dropped: Number of records dropped as duplicates
    """
    child_id: str
    sessions: Tuple[SessionRecord, ...]
    local_available: bool = True
    remote_available: bool = True
    duplicates_dropped: int = 0


def _format_score(score: float) -> str:
    if float(score).is_integer():
        return str(int(score))
    return repr(float(score))


def session_fingerprint(record: SessionRecord) -> str:
    """Content key identifying the same session across sources."""
    return f"{record.timestamp_iso}|{record.game_name}|{_format_score(record.score)}"


def parse_timestamp(timestamp_iso: str) -> datetime:
    """Parse an ISO-8601 timestamp; unparseable values sort as earliest."""
    try:
        parsed = datetime.fromisoformat(timestamp_iso.strip().replace('Z', '+00:00'))
    except (ValueError, AttributeError):
        logger.debug(f"Unparseable session timestamp: {timestamp_iso!r}")
        return _EARLIEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def dedupe_sessions(records: List[SessionRecord]) -> Tuple[List[SessionRecord], int]:
    """Keep the first record per fingerprint; returns (kept, dropped_count)."""
    seen = set()
    kept = []
    for record in records:
        key = session_fingerprint(record)
        if key in seen:
            continue
        seen.add(key)
        kept.append(record)
    return kept, len(records) - len(kept)


def merge_sessions(
    local: List[SessionRecord],
    remote: List[SessionRecord],
    prefer: str = "local"
) -> List[SessionRecord]:
    """
    Merge, deduplicate and recency-sort two session lists.

    Args:
        local: Sessions from the device-local cache
        remote: Sessions from the remote store
        prefer: Source whose copy survives a fingerprint collision
            ('local' or 'remote')

    Returns:
        Deduplicated sessions, most recent first
    """
    if prefer not in ('local', 'remote'):
        raise ValueError(f"prefer must be 'local' or 'remote', got {prefer!r}")

    combined = list(local) + list(remote) if prefer == 'local' else list(remote) + list(local)
    kept, _ = dedupe_sessions(combined)
    # sorted() is stable, so equal timestamps keep concatenation order
    return sorted(kept, key=lambda r: parse_timestamp(r.timestamp_iso), reverse=True)


class SessionReconciler:
    """
    Builds one canonical session list per child from the two stores.

    Usage:
        reconciler = SessionReconciler(local_cache, remote_store, profiles, config)
        result = reconciler.reconcile("maya")
    """

    def __init__(
        self,
        local_store: SessionStore,
        remote_store: RemoteSessionStore,
        profile_store: Optional[ProfileStore] = None,
        config: Optional[Dict] = None
    ):
        """
        Initialize reconciler with injected stores.

        Args:
            local_store: Device-local session cache
            remote_store: Shared remote session store
            profile_store: Child profile store
            config: Configuration dict (reconciliation.prefer_source)
        """
        self.local_store = local_store
        self.remote_store = remote_store
        self.profile_store = profile_store

        if config is None:
            config = {}
        self.prefer = config.get('reconciliation', {}).get('prefer_source', 'local')
        if self.prefer not in ('local', 'remote'):
            raise ValueError(f"reconciliation.prefer_source must be 'local' or 'remote', got {self.prefer!r}")

    def _load_local(self, child_id: str) -> Tuple[List[SessionRecord], bool]:
        try:
            records = self.local_store.load_all()
        except Exception as e:
            logger.warning(f"Local session cache unavailable: {e}")
            return [], False
        return [r for r in records if r.child_id == child_id], True

    def _load_remote(self, child_id: str) -> Tuple[List[SessionRecord], bool]:
        try:
            records = self.remote_store.load_all(child_id)
        except Exception as e:
            logger.warning(f"Remote session store unavailable for '{child_id}': {e}")
            return [], False
        return list(records), True

    def reconcile(self, child_id: str) -> ReconciledSessions:
        """
        Load, merge and deduplicate all sessions for a child.

        Args:
            child_id: Child identifier (any case)

        Returns:
            ReconciledSessions for this pass
        """
        child_id = normalize_child_id(child_id)

        local, local_ok = self._load_local(child_id)
        remote, remote_ok = self._load_remote(child_id)

        merged = merge_sessions(local, remote, prefer=self.prefer)
        dropped = len(local) + len(remote) - len(merged)

        logger.info(
            f"Reconciled sessions for '{child_id}': {len(local)} local + {len(remote)} remote "
            f"-> {len(merged)} ({dropped} duplicates dropped)"
        )

        return ReconciledSessions(
            child_id=child_id,
            sessions=tuple(merged),
            local_available=local_ok,
            remote_available=remote_ok,
            duplicates_dropped=dropped,
        )

    def submit(self, record: SessionRecord) -> bool:
        """
        Append a finished session to both stores.

        The local append must succeed; a failed remote append is logged and
        left for the next read-time merge to pick up from the local cache.

        Returns:
            True if the remote append succeeded
        """
        self.local_store.append_one(record)
        try:
            self.remote_store.append_one(record.child_id, record)
        except Exception as e:
            logger.warning(f"Remote append failed for '{record.child_id}' ({record.game_name}): {e}")
            return False
        logger.info(f"✓ Session submitted: {record.child_id} / {record.game_name}")
        return True

    def load_profile(self, child_id: str) -> Optional[ChildProfile]:
        """Profile for a child; None when unknown or the store fails."""
        if self.profile_store is None:
            return None
        try:
            return self.profile_store.get(normalize_child_id(child_id))
        except Exception as e:
            logger.warning(f"Profile store unavailable for '{child_id}': {e}")
            return None
