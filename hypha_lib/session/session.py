"""The per-request session object.

A `Session` is owned by exactly one request (it lives on
`request.state.session`) and must always be used instead of touching the
backing store directly. Its data may only change while it is locked:

    session.lock_and_reload()
    session.set('user', username)
    session.change_session_id()
    session.write_and_unlock()

or, equivalently, ``with session.locked(): ...``. Unlock as soon as
possible: while a session is locked every other request carrying the
same identifier blocks in `lock_and_reload`.

Locking blocks the calling thread, so route handlers that lock the
session should be plain ``def`` handlers, which FastAPI runs in its
thread pool.
"""
from __future__ import annotations
import copy
import enum
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .exceptions import SessionLoadError, SessionStateError
from .locks import SessionLock
from .store import SessionStore, is_valid_id

logger = logging.getLogger(__name__)


class LockState(str, enum.Enum):
    UNLOCKED = "unlocked"
    LOCKED = "locked"


class Session:
    def __init__(self, store: SessionStore, session_id: Optional[str] = None, strict_reads: bool = False) -> None:
        self._store = store
        self._id = session_id
        self._strict_reads = strict_reads
        self._payload: Dict[str, Any] = {}
        self._state = LockState.UNLOCKED
        self._lock: Optional[SessionLock] = None
        self._persisted = False
        # What the record held when it was locked, None if there was none
        self._stored: Optional[Dict[str, Any]] = None
        self.cookie_cleared = False

    @property
    def id(self) -> Optional[str]:
        return self._id

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def is_locked(self) -> bool:
        return self._state is LockState.LOCKED

    @property
    def persisted_exists(self) -> bool:
        """True once a record for the current id was loaded or saved."""
        return self._persisted

    def __repr__(self) -> str:
        return f"Session(id={self._id!r}, state={self._state.value})"

    def _require_locked(self, message: str) -> None:
        if self._state is not LockState.LOCKED:
            raise SessionStateError(message)

    def _release(self) -> None:
        lock, self._lock = self._lock, None
        self._state = LockState.UNLOCKED
        if lock is not None:
            lock.release()

    # Accessors

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a value from the session.

        Should be called while the session is locked. Reads outside a lock
        are allowed by default (`strict_reads` is False) and return the
        snapshot bootstrap loaded, or whatever was last loaded since, which
        another request may have changed in the meantime. With
        `strict_reads` enabled such reads raise `SessionStateError`.
        """
        if self._strict_reads and self._state is not LockState.LOCKED:
            raise SessionStateError('Cannot get session value, session not locked')
        return self._payload.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Change a value in the session. Must be called while locked.

        The change only reaches the backing store on `write_and_unlock`.
        """
        self._require_locked('Cannot set session value, session not locked')
        self._payload[key] = value

    def remove(self, key: str) -> None:
        """Remove a value from the session, if present. Must be called while locked."""
        self._require_locked('Cannot remove session value, session not locked')
        self._payload.pop(key, None)

    # Lock management

    def lock_and_reload(self) -> None:
        """Lock the session and reload it from the backing store.

        Must be called before changing any values. A session without an
        identifier, or whose record has disappeared, gets a new
        identifier and starts out empty.
        """
        if self._state is LockState.LOCKED:
            raise SessionStateError('Cannot lock session, already locked')

        lock: Optional[SessionLock] = None
        payload = None
        if is_valid_id(self._id):
            lock = self._store.lock(self._id)
            try:
                payload = self._store.load(self._id)
            except BaseException:
                lock.release()
                raise
            if payload is None:
                logger.debug("Session %s has no record; issuing a new id", self._id)
                lock.release()

        self._persisted = payload is not None
        self._stored = copy.deepcopy(payload)
        if payload is None:
            self._id = self._store.new_id()
            lock = self._store.lock(self._id)
            payload = {}

        self._lock = lock
        self._payload = payload
        self._state = LockState.LOCKED
        logger.debug("Session %s locked", self._id)

    def write_and_unlock(self) -> None:
        """Write the session to the backing store and unlock it."""
        self._require_locked('Cannot unlock session, not locked')
        assert self._id is not None
        try:
            self._store.save(self._id, self._payload)
            self._persisted = True
        finally:
            self._release()
        logger.debug("Session %s written and unlocked", self._id)

    def unlock_and_reload(self) -> None:
        """Unlock the session without saving any modified values.

        Reloads the values from the backing store, so unsaved changes are
        really discarded rather than just left unwritten.
        """
        self._require_locked('Cannot unlock session, not locked')
        assert self._id is not None
        try:
            payload = self._store.load(self._id)
        except SessionLoadError:
            self._payload = {}
            raise
        finally:
            self._release()
        self._payload = payload or {}
        self._persisted = payload is not None
        logger.debug("Session %s unlocked, changes discarded", self._id)

    @contextmanager
    def locked(self) -> Iterator["Session"]:
        """Hold the lock for the duration of a block.

        Writes on a clean exit; discards the changes if the block raises.
        """
        self.lock_and_reload()
        try:
            yield self
        except BaseException:
            self.unlock_and_reload()
            raise
        self.write_and_unlock()

    def change_session_id(self) -> None:
        """Regenerate the session identifier, keeping the session's data.

        Use on every login, or whenever other privileges are stored in the
        session, to prevent session fixation. The record under the old
        identifier is deleted. Must be called while locked.

        Only what was stored when the session was locked moves to the new
        identifier; changes made since are written by `write_and_unlock`
        and dropped by `unlock_and_reload` as usual.
        """
        self._require_locked('Cannot change session id, session not locked')
        assert self._id is not None and self._lock is not None
        old_id, old_lock = self._id, self._lock
        new_id, new_lock = self._store.regenerate_id(old_id, self._stored)
        self._id, self._lock = new_id, new_lock
        self._persisted = self._stored is not None
        old_lock.release()
        logger.info("Session identifier rotated")
        logger.debug("Session %s is now %s", old_id, new_id)

    # Request lifecycle helpers

    def probe_load(self) -> None:
        """Load the session, write it straight back and unlock it.

        Checks that the record is usable and keeps it alive without
        holding the lock for the rest of the request. Leaves an advisory
        snapshot of the payload behind. Raises `SessionLoadError` when
        the record is unreadable or does not exist.
        """
        if self._state is LockState.LOCKED:
            raise SessionStateError('Cannot probe session, already locked')
        if self._id is None:
            raise SessionStateError('Cannot probe session, no session id')
        lock = self._store.lock(self._id)
        try:
            payload = self._store.load(self._id)
            if payload is None:
                raise SessionLoadError(f"Unknown session {self._id}")
            self._store.save(self._id, payload)
        finally:
            lock.release()
        self._payload = payload
        self._persisted = True

    def forget(self) -> None:
        """Drop the identifier so the client's cookie gets cleared."""
        if self._state is LockState.LOCKED:
            raise SessionStateError('Cannot forget session, session locked')
        self._id = None
        self._payload = {}
        self._persisted = False
        self.cookie_cleared = True

    def ensure_released(self) -> None:
        """Unlock a session left locked at the end of a request, discarding changes."""
        if self._state is LockState.LOCKED:
            logger.warning("Session %s still locked at end of request; discarding changes", self._id)
            self._release()
            self._payload = {}
