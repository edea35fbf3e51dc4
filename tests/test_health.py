"""Basic health check tests."""

from typer.testing import CliRunner

from svastha.config import get_settings
from svastha.main import app

runner = CliRunner()


def test_import_svastha():
    """Test that svastha package can be imported."""
    import svastha
    assert svastha.__version__ == "1.0.0"


def test_import_onboarding():
    """Test that the onboarding API can be imported."""
    from onboarding import (
        OnboardingOrchestrator,
        OnboardingPhase,
        Outcome,
        Route,
    )

    assert OnboardingPhase.IDLE.value == "idle"
    assert Outcome.success(Route.SURVEY).ok is True
    assert OnboardingOrchestrator is not None


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.stdout


def test_health_passes_with_supabase(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    get_settings.cache_clear()
    try:
        result = runner.invoke(app, ["health"])
    finally:
        get_settings.cache_clear()
    assert result.exit_code == 0
    assert "All checks passed" in result.stdout


def test_health_fails_without_url(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "")
    get_settings.cache_clear()
    try:
        result = runner.invoke(app, ["health"])
    finally:
        get_settings.cache_clear()
    assert result.exit_code == 1
