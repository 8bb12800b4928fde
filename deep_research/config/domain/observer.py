"""ConfigObserver port — domain events emitted while loading settings."""

from typing import Protocol


class ConfigObserver(Protocol):
    """Observer port for settings loading events."""

    def config_loaded(self, path: str, model: str) -> None: ...
