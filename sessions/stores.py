"""
Session and profile store interfaces, plus the local and in-memory stores.

Two independent record sources feed a report:
- The device-local cache: every session played on this device, any child
- The remote store: every session for one child, from any device

Both are append-only. The reconciliation layer receives them as injected
interfaces, so merge behavior can be tested without a real backend.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .models import ChildProfile, SessionRecord, normalize_child_id, parse_sessions

logger = logging.getLogger(__name__)


class _UnreadableCache(Exception):
    """Raised internally when the cache file exists but cannot be used."""


class SessionStore(ABC):
    """Interface for the device-local session cache."""

    @abstractmethod
    def load_all(self) -> List[SessionRecord]:
        """Load every cached session (all children)."""
        pass

    @abstractmethod
    def append_one(self, record: SessionRecord) -> None:
        """Append one session to the cache."""
        pass


class RemoteSessionStore(ABC):
    """Interface for the shared, multi-device session store."""

    @abstractmethod
    def load_all(self, child_id: str) -> List[SessionRecord]:
        """Load every session stored for one child."""
        pass

    @abstractmethod
    def append_one(self, child_id: str, record: SessionRecord) -> None:
        """Append one session for one child."""
        pass


class ProfileStore(ABC):
    """Interface for child profiles."""

    @abstractmethod
    def get(self, child_id: str) -> Optional[ChildProfile]:
        """Get a profile, or None if the child is unknown."""
        pass

    @abstractmethod
    def save(self, profile: ChildProfile) -> None:
        """Create or update a profile; a missing age keeps the stored one."""
        pass


class LocalSessionCache(SessionStore):
    """
    JSON-file session cache.

    The file holds one JSON array of raw session records, the same shape the
    mini-games keep in browser storage. Unreadable or non-array content is
    treated as an empty cache for reading; before the next append the bad
    file is moved aside as ``<name>.corrupt-<timestamp>`` so no recorded
    session is overwritten.
    """

    def __init__(self, cache_path: str):
        self.cache_path = Path(cache_path)

    def _read_raw(self) -> List:
        if not self.cache_path.exists():
            return []
        try:
            with open(self.cache_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise _UnreadableCache(f"Unreadable session cache {self.cache_path}: {e}") from e
        if not isinstance(data, list):
            raise _UnreadableCache(f"Session cache {self.cache_path} is not an array")
        return data

    def _quarantine(self) -> Path:
        stamp = datetime.now().strftime('%Y%m%dT%H%M%S%f')
        corrupt_path = self.cache_path.with_name(f"{self.cache_path.name}.corrupt-{stamp}")
        self.cache_path.replace(corrupt_path)
        logger.warning(f"Moved unreadable session cache aside: {corrupt_path}")
        return corrupt_path

    def load_all(self) -> List[SessionRecord]:
        try:
            raw = self._read_raw()
        except _UnreadableCache as e:
            logger.warning(f"{e}; treating it as empty")
            return []
        records = parse_sessions(raw)
        logger.debug(f"Loaded {len(records)} sessions from local cache")
        return records

    def append_one(self, record: SessionRecord) -> None:
        try:
            raw = self._read_raw()
        except _UnreadableCache as e:
            logger.warning(str(e))
            self._quarantine()
            raw = []
        raw.append(record.to_dict())
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.cache_path.with_suffix(self.cache_path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(raw, f, indent=2)
        tmp_path.replace(self.cache_path)
        logger.info(f"✓ Session cached locally: {record.game_name} @ {record.timestamp_iso}")


class InMemorySessionStore(SessionStore):
    """List-backed local cache, used by tests and the CLI dry runs."""

    def __init__(self, records: Optional[List[SessionRecord]] = None):
        self._records: List[SessionRecord] = list(records or [])

    def load_all(self) -> List[SessionRecord]:
        return list(self._records)

    def append_one(self, record: SessionRecord) -> None:
        self._records.append(record)


class InMemoryRemoteStore(RemoteSessionStore):
    """Dict-backed remote store keyed by child id."""

    def __init__(self, records: Optional[Dict[str, List[SessionRecord]]] = None):
        self._records: Dict[str, List[SessionRecord]] = {
            normalize_child_id(k): list(v) for k, v in (records or {}).items()
        }

    def load_all(self, child_id: str) -> List[SessionRecord]:
        return list(self._records.get(normalize_child_id(child_id), []))

    def append_one(self, child_id: str, record: SessionRecord) -> None:
        self._records.setdefault(normalize_child_id(child_id), []).append(record)


class InMemoryProfileStore(ProfileStore):

    def __init__(self, profiles: Optional[List[ChildProfile]] = None):
        self._profiles: Dict[str, ChildProfile] = {p.name: p for p in (profiles or [])}

    def get(self, child_id: str) -> Optional[ChildProfile]:
        return self._profiles.get(normalize_child_id(child_id))

    def save(self, profile: ChildProfile) -> None:
        existing = self._profiles.get(profile.name)
        if existing is not None:
            profile = ChildProfile(
                name=profile.name,
                age=profile.age if profile.age is not None else existing.age,
                created_at=existing.created_at or profile.created_at,
            )
        self._profiles[profile.name] = profile
