import pydantic
import pytest

from afilia.core.config import AfiliaSettings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AFILIA_LOCK_TIMEOUT", raising=False)
    monkeypatch.delenv("AFILIA_ECHO_SQL", raising=False)
    settings = get_settings()
    assert settings.lock_timeout == 10.0
    assert settings.echo_sql is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AFILIA_LOCK_TIMEOUT", "2.5")
    monkeypatch.setenv("AFILIA_ECHO_SQL", "true")
    settings = get_settings()
    assert settings.lock_timeout == 2.5
    assert settings.echo_sql is True


def test_negative_timeout_is_rejected() -> None:
    with pytest.raises(pydantic.ValidationError):
        AfiliaSettings(lock_timeout=-1)
