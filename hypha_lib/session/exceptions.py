"""Exceptions."""


class SessionError(RuntimeError):
    """Base class for session lifecycle failures."""


class SessionConfigurationError(SessionError):
    """The session layer is misconfigured or was started twice for a request."""


class SessionStateError(SessionError):
    """An operation was called in the wrong lock state."""


class SessionLoadError(SessionError):
    """A session record could not be loaded from the backing store."""
