from pathlib import Path

import pytest
from pydantic import ValidationError

from kube_health.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for var in ("KUBECONFIG", "CONTEXT", "NAMESPACE", "RECENT_EVENTS", "SCAN_TIMEOUT", "CONCURRENT", "OUTPUT_FORMAT"):
        monkeypatch.delenv(f"KUBE_HEALTH_{var}", raising=False)


def test_defaults():
    settings = get_settings()
    assert settings.kubeconfig is None
    assert settings.namespace is None
    assert settings.recent_events == 5
    assert settings.scan_timeout == 30.0
    assert settings.concurrent is True
    assert settings.output_format == "text"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("KUBE_HEALTH_KUBECONFIG", "/etc/kube/admin.conf")
    monkeypatch.setenv("KUBE_HEALTH_RECENT_EVENTS", "10")
    monkeypatch.setenv("KUBE_HEALTH_CONCURRENT", "false")
    settings = Settings()
    assert settings.kubeconfig == Path("/etc/kube/admin.conf")
    assert settings.recent_events == 10
    assert settings.concurrent is False


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("KUBE_HEALTH_NAMESPACE=kube-system\nUNRELATED=1\n", encoding="utf-8")
    assert Settings().namespace == "kube-system"


@pytest.mark.parametrize(
    "var,value",
    [
        ("KUBE_HEALTH_RECENT_EVENTS", "-1"),
        ("KUBE_HEALTH_SCAN_TIMEOUT", "-1"),
        ("KUBE_HEALTH_OUTPUT_FORMAT", "yaml"),
    ],
)
def test_invalid_values_rejected(monkeypatch, var, value):
    monkeypatch.setenv(var, value)
    with pytest.raises(ValidationError):
        Settings()


def test_zero_timeout_disables_deadline(monkeypatch):
    monkeypatch.setenv("KUBE_HEALTH_SCAN_TIMEOUT", "0")
    assert Settings().scan_timeout is None


def test_assignment_is_validated():
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.recent_events = -3
    settings.scan_timeout = 0
    assert settings.scan_timeout is None
