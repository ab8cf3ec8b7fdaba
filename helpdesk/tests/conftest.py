"""
pytest configuration and shared fixtures
"""
import pytest

from helpdesk.config import Settings
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.tests.fakes import InMemoryCategoryRepository, make_jira

MASTER_EMAIL = "support@example.com"
SERVICE_ACCOUNT = "portal@example.com"


@pytest.fixture
def settings():
    """Fully configured settings, independent of the environment and .env"""
    return Settings(
        _env_file=None,
        jira_base_url="https://example.atlassian.net/",
        jira_email=SERVICE_ACCOUNT,
        jira_api_token="token",
        jira_project_key="HELP",
        supabase_url="https://db.example.co",
        supabase_service_role_key="service-key",
        master_email=MASTER_EMAIL,
        bulk_operation_delay=0,
    )


@pytest.fixture
def category_repo():
    return InMemoryCategoryRepository()


@pytest.fixture
def jira():
    return make_jira()


@pytest.fixture
def sync(jira, category_repo):
    return CategorySyncService(jira, category_repo)
