"""Tests for settings records and registry configuration."""

from __future__ import annotations

import dataclasses

import pytest

from filehandler._config import FtpSettings, HandlerConfig, LocalSettings, RegistryConfig
from filehandler._errors import InvalidConfig, MissingField


class TestFtpSettings:
    def test_fields(self) -> None:
        s = FtpSettings(url="ftp://host/x", user="alice", password="secret")
        assert (s.url, s.user, s.password) == ("ftp://host/x", "alice", "secret")

    def test_defaults(self) -> None:
        s = FtpSettings(url="ftp://host")
        assert s.user is None
        assert s.password is None

    @pytest.mark.parametrize(
        ("user", "password", "expected"),
        [
            ("alice", "secret", True),
            ("alice", None, False),
            (None, "secret", False),
            ("  ", "secret", False),
            ("alice", "", False),
        ],
    )
    def test_credentials_available(self, user: str | None, password: str | None, expected: bool) -> None:
        assert FtpSettings(url="ftp://h", user=user, password=password).credentials_available is expected

    @pytest.mark.parametrize("url", ["", "   "])
    def test_validate_blank_url(self, url: str) -> None:
        with pytest.raises(MissingField, match="url") as exc_info:
            FtpSettings(url=url).validate()
        assert exc_info.value.field == "url"

    def test_validate_passes(self) -> None:
        FtpSettings(url="ftp://host").validate()

    def test_repr_masks_password(self) -> None:
        r = repr(FtpSettings(url="ftp://host", user="alice", password="secret"))
        assert "secret" not in r
        assert "***" in r

    def test_frozen(self) -> None:
        s = FtpSettings(url="ftp://host")
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.url = "ftp://other"  # type: ignore[misc]


class TestLocalSettings:
    def test_validate_blank_root(self) -> None:
        with pytest.raises(MissingField) as exc_info:
            LocalSettings(root="").validate()
        assert exc_info.value.field == "root"


class TestHandlerConfig:
    def test_fields(self) -> None:
        hc = HandlerConfig(type="ftp", options={"url": "ftp://host"})
        assert hc.type == "ftp"
        assert hc.options == {"url": "ftp://host"}

    def test_defaults(self) -> None:
        assert HandlerConfig(type="local").options == {}

    def test_frozen(self) -> None:
        hc = HandlerConfig(type="local")
        with pytest.raises(dataclasses.FrozenInstanceError):
            hc.type = "ftp"  # type: ignore[misc]


class TestRegistryConfig:
    def test_validate_passes(self) -> None:
        RegistryConfig(handlers={"main": HandlerConfig(type="ftp")}).validate()

    def test_validate_blank_type(self) -> None:
        rc = RegistryConfig(handlers={"main": HandlerConfig(type=" ")})
        with pytest.raises(InvalidConfig, match="main"):
            rc.validate()

    def test_from_dict(self) -> None:
        data = {
            "handlers": {
                "uploads": {"type": "ftp", "options": {"url": "ftp://host/up", "user": "alice"}},
                "scratch": {"type": "local"},
            }
        }
        rc = RegistryConfig.from_dict(data)
        assert rc.handlers["uploads"].type == "ftp"
        assert rc.handlers["uploads"].options == {"url": "ftp://host/up", "user": "alice"}
        assert rc.handlers["scratch"].options == {}

    def test_from_dict_empty(self) -> None:
        assert RegistryConfig.from_dict({}).handlers == {}

    def test_from_dict_handlers_not_a_dict(self) -> None:
        with pytest.raises(InvalidConfig, match="handlers"):
            RegistryConfig.from_dict({"handlers": ["ftp"]})

    def test_from_dict_entry_not_a_dict(self) -> None:
        with pytest.raises(InvalidConfig, match="main"):
            RegistryConfig.from_dict({"handlers": {"main": "ftp"}})

    def test_from_dict_missing_type(self) -> None:
        with pytest.raises(MissingField) as exc_info:
            RegistryConfig.from_dict({"handlers": {"main": {"options": {}}}})
        assert exc_info.value.field == "type"

    def test_frozen(self) -> None:
        rc = RegistryConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            rc.handlers = {}  # type: ignore[misc]
