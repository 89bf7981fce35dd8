"""Backing store for session records.

Combines a `StorageBackend` (where payloads live) with a `LockProvider`
(who may touch them) into the primitive operations the session state
machine is built on. Payloads are plain dicts; they are copied on the
way in and out so the in-memory copy a request mutates is never the
stored object itself.
"""
from __future__ import annotations
import copy
import logging
import re
import uuid
from typing import Any, Dict, Optional, Tuple

from hypha_lib.storage import StorageBackend
from .exceptions import SessionLoadError
from .locks import LockProvider, SessionLock

logger = logging.getLogger(__name__)

SESSION_NS = "sessions"

# Shape of the identifiers `new_id` issues (uuid4().hex)
SESSION_ID_RE = re.compile(r"[0-9a-f]{32}")

Payload = Dict[str, Any]


def is_valid_id(session_id: Any) -> bool:
    return isinstance(session_id, str) and SESSION_ID_RE.fullmatch(session_id) is not None


class SessionStore:
    """Session records keyed by an opaque identifier.

    Callers are expected to hold `lock(session_id)` around `load`/`save`
    sequences; the store itself does not enforce it. Identifiers arrive
    from client cookies, so anything that does not look like an id this
    store issued is refused before it reaches storage or the lock files.
    """

    def __init__(self, storage: StorageBackend, locks: LockProvider, namespace: str = SESSION_NS) -> None:
        self.storage = storage
        self.locks = locks
        self.namespace = namespace

    def _check_id(self, session_id: Any) -> None:
        if not is_valid_id(session_id):
            raise SessionLoadError("Malformed session id")

    def new_id(self) -> str:
        """Return a fresh identifier with no record behind it."""
        while True:
            sid = uuid.uuid4().hex
            if not self.storage.exists(self.namespace, sid):
                return sid

    def lock(self, session_id: str) -> SessionLock:
        """Block until the caller holds the record for `session_id`.

        Raises `SessionLoadError` for malformed identifiers or when the
        lock itself cannot be taken (e.g. an unwritable lock directory).
        """
        self._check_id(session_id)
        try:
            return self.locks.acquire(session_id)
        except OSError as e:
            raise SessionLoadError(f"Failed to lock session {session_id}: {e}") from e

    def load(self, session_id: str) -> Optional[Payload]:
        """Return the stored payload, or None if there is no record.

        Raises `SessionLoadError` if the identifier is malformed or a
        record exists but cannot be read.
        """
        self._check_id(session_id)
        try:
            raw = self.storage.load(self.namespace, session_id)
        except KeyError:
            return None
        except Exception as e:
            raise SessionLoadError(f"Failed to load session {session_id}: {e}") from e
        if not isinstance(raw, dict):
            raise SessionLoadError(f"Session {session_id} is malformed: expected mapping, got {type(raw).__name__}")
        return copy.deepcopy(raw)

    def save(self, session_id: str, payload: Payload) -> None:
        self.storage.save(self.namespace, session_id, copy.deepcopy(dict(payload)))

    def delete(self, session_id: str) -> None:
        """Remove the record for `session_id`. Missing records are ignored."""
        try:
            self.storage.delete(self.namespace, session_id)
        except KeyError:
            pass

    def regenerate_id(self, old_id: str, payload: Optional[Payload]) -> Tuple[str, SessionLock]:
        """Move a session record to a new identifier and delete the old one.

        `payload` is what the old record held when it was locked (None if
        it had no record); only that is written under the new identifier,
        so changes not yet written stay unwritten. The new identifier is
        locked before anything is written under it and the lock is handed
        to the caller, who still holds (and must release) the lock on
        `old_id`. On failure nothing is left behind under the new id.
        """
        new_id = self.new_id()
        new_lock = self.lock(new_id)
        try:
            if payload is not None:
                self.save(new_id, payload)
            self.delete(old_id)
        except BaseException:
            try:
                self.delete(new_id)
            finally:
                new_lock.release()
            raise
        logger.debug("Moved session record %s to %s", old_id, new_id)
        return new_id, new_lock
