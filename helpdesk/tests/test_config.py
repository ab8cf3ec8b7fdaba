"""Tests for settings and configuration guards"""
import pytest

from helpdesk.config import Settings
from helpdesk.exceptions import ConfigurationError


def test_defaults():
    """Test default settings values"""
    settings = Settings(_env_file=None)
    assert settings.jira_project_key == "HELP"
    assert settings.bulk_operation_delay == 0.5
    assert settings.acknowledgement_cache_ttl == 900.0


def test_jira_url_strips_trailing_slash(settings):
    """Test the Jira URL has no trailing slash"""
    assert settings.JIRA_URL == "https://example.atlassian.net"


def test_require_jira_names_missing_variables():
    """Test the error names only the missing variables"""
    settings = Settings(_env_file=None, jira_base_url="https://x.atlassian.net", jira_email="", jira_api_token="")
    with pytest.raises(ConfigurationError) as exc:
        settings.require_jira()
    assert "JIRA_EMAIL" in str(exc.value)
    assert "JIRA_API_TOKEN" in str(exc.value)
    assert "JIRA_BASE_URL" not in str(exc.value)


def test_configured_settings_pass_all_guards(settings):
    """Test guards pass with full configuration"""
    settings.require_jira()
    settings.require_supabase()
    settings.require_master()


@pytest.mark.parametrize("email, expected", [
    ("support@example.com", True),
    (" Support@Example.COM ", True),
    ("user@example.com", False),
    ("", False),
    (None, False),
])
def test_is_master(settings, email, expected):
    """Test master account matching"""
    assert settings.is_master(email) is expected


def test_is_master_without_configured_master():
    """Test nobody is master when none is configured"""
    assert Settings(_env_file=None, master_email="").is_master("") is False
