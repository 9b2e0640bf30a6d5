"""Configuration model: immutable settings records and registry config."""

from __future__ import annotations

import dataclasses

from filehandler._errors import InvalidConfig, MissingField


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


@dataclasses.dataclass(frozen=True)
class FtpSettings:
    """Connection settings for an FTP store.

    :param url: Base URL, e.g. ``ftp://host:2121/pub``. Required.
    :param user: Login name. Anonymous login is used unless both user and password are set.
    :param password: Login password.
    """

    url: str
    user: str | None = None
    password: str | None = None

    @property
    def credentials_available(self) -> bool:
        """``True`` when both user and password are non-blank."""
        return not _blank(self.user) and not _blank(self.password)

    def validate(self) -> None:
        """Check required fields.

        :raises MissingField: If ``url`` is blank.
        """
        if _blank(self.url):
            raise MissingField("url must not be blank.", field="url")

    def __repr__(self) -> str:
        masked = "***" if self.password else None
        return f"FtpSettings(url={self.url!r}, user={self.user!r}, password={masked!r})"


@dataclasses.dataclass(frozen=True)
class LocalSettings:
    """Settings for a handler rooted in a local directory.

    :param root: Directory all relative paths resolve against. Required.
    """

    root: str

    def validate(self) -> None:
        """Check required fields.

        :raises MissingField: If ``root`` is blank.
        """
        if _blank(self.root):
            raise MissingField("root must not be blank.", field="root")


@dataclasses.dataclass(frozen=True)
class HandlerConfig:
    """Describes a handler instance.

    :param type: Handler type identifier (e.g. ``"ftp"``, ``"local"``).
    :param options: Keyword options passed to the handler constructor.
    """

    type: str
    options: dict[str, object] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class RegistryConfig:
    """Top-level configuration container.

    :param handlers: Mapping of handler names to their configs.
    """

    handlers: dict[str, HandlerConfig] = dataclasses.field(default_factory=dict)

    def validate(self) -> None:
        """Validate that every handler names a type.

        :raises InvalidConfig: If a handler config has a blank type.
        """
        for name, cfg in self.handlers.items():
            if _blank(cfg.type):
                raise InvalidConfig(f"Handler '{name}' has no type.")

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> RegistryConfig:
        """Construct from a plain dict (e.g. parsed TOML/JSON).

        :param data: Dict with a ``handlers`` key.
        :raises InvalidConfig: If the structure is not a mapping of mappings.
        """
        raw_handlers = data.get("handlers", {})
        if not isinstance(raw_handlers, dict):
            raise InvalidConfig("Expected 'handlers' to be a dict")

        handlers: dict[str, HandlerConfig] = {}
        for name, cfg in raw_handlers.items():
            if not isinstance(cfg, dict):
                raise InvalidConfig(f"Handler config for '{name}' must be a dict")
            if "type" not in cfg:
                raise MissingField(f"Handler config for '{name}' has no 'type'", field="type")
            handlers[str(name)] = HandlerConfig(
                type=str(cfg["type"]),
                options=dict(cfg.get("options", {})),
            )

        return cls(handlers=handlers)
