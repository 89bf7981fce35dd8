from typing import Any, Dict


class ServiceContainer:
    """Explicit registry of the application's long-lived collaborators.

    `create_app` registers the storage backend, lock provider and session
    store here under string keys; request handlers resolve them through
    `hypha_lib.services.resolver`.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}

    def register_singleton(self, key: str, instance: Any) -> None:
        self._singletons[key] = instance

    def get(self, key: str) -> Any:
        try:
            return self._singletons[key]
        except KeyError:
            raise KeyError(f"No service registered for key '{key}'") from None
