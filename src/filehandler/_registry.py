"""Registry: handler lifecycle management by name."""

from __future__ import annotations

from typing import TYPE_CHECKING

from filehandler._config import RegistryConfig
from filehandler._errors import InvalidConfig

if TYPE_CHECKING:
    from types import TracebackType

    from filehandler._handler import FileHandler

# Global handler factory registry: maps type strings to handler classes.
_HANDLER_FACTORIES: dict[str, type[FileHandler]] = {}


def register_handler(type_name: str, cls: type[FileHandler]) -> None:
    """Register a handler class for a given type string.

    :param type_name: The type identifier (e.g. ``"ftp"``).
    :param cls: The handler class to instantiate.
    """
    _HANDLER_FACTORIES[type_name] = cls


def _register_builtin_handlers() -> None:
    """Register the built-in handlers."""
    from filehandler.handlers import FTPHandler, LocalHandler, SFTPHandler

    for type_name, cls in (("ftp", FTPHandler), ("local", LocalHandler), ("sftp", SFTPHandler)):
        if type_name not in _HANDLER_FACTORIES:
            register_handler(type_name, cls)


class Registry:
    """Builds handlers from configuration and hands them out by name.

    :param config: Optional configuration. Validates immediately.
    :raises InvalidConfig: If config is invalid.
    """

    def __init__(self, config: RegistryConfig | None = None) -> None:
        _register_builtin_handlers()
        self._config = config or RegistryConfig()
        self._config.validate()
        self._handlers: dict[str, FileHandler] = {}

    def __repr__(self) -> str:
        handlers = sorted(self._config.handlers.keys())
        return f"Registry(handlers={handlers!r})"

    def get_handler(self, name: str) -> FileHandler:
        """Get a handler by its configured name, creating it on first use.

        :param name: The handler name.
        :raises KeyError: If no handler with this name is configured.
        :raises InvalidConfig: If the type is unknown or the options are rejected.
        """
        if name not in self._config.handlers:
            available = sorted(self._config.handlers.keys())
            raise KeyError(f"Unknown handler '{name}'. Available handlers: {available}")

        if name not in self._handlers:
            cfg = self._config.handlers[name]
            if cfg.type not in _HANDLER_FACTORIES:
                raise InvalidConfig(
                    f"Unknown handler type '{cfg.type}'. Registered types: {sorted(_HANDLER_FACTORIES.keys())}"
                )
            factory = _HANDLER_FACTORIES[cfg.type]
            try:
                self._handlers[name] = factory(**cfg.options)
            except TypeError as exc:
                raise InvalidConfig(
                    f"Invalid options for handler '{name}' (type={cfg.type!r}): {exc}. "
                    f"Provided options: {sorted(cfg.options.keys())}"
                ) from exc
        return self._handlers[name]

    def close(self) -> None:
        """Close all instantiated handlers."""
        for handler in self._handlers.values():
            handler.close()
        self._handlers.clear()

    def __enter__(self) -> Registry:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
