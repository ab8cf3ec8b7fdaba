"""
Helpdesk Portal - Configuration Management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List

from helpdesk.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # Jira
    jira_base_url: str = ""
    jira_email: str = ""
    jira_api_token: str = ""
    jira_project_key: str = "HELP"
    jira_timeout: float = 30.0
    jira_max_retries: int = 3

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Support operator allowed to run bulk operations
    master_email: str = ""

    # Bulk jobs pause between tracker writes (seconds)
    bulk_operation_delay: float = 0.5

    # Acknowledgement cache lifetime (seconds)
    acknowledgement_cache_ttl: float = 900.0

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def JIRA_URL(self) -> str:
        """Jira base URL without trailing slash"""
        return self.jira_base_url.rstrip("/")

    def _require(self, **values: str) -> None:
        missing: List[str] = [name.upper() for name, value in values.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

    def require_jira(self) -> None:
        """Raise ConfigurationError unless Jira credentials are set"""
        self._require(
            jira_base_url=self.jira_base_url,
            jira_email=self.jira_email,
            jira_api_token=self.jira_api_token,
        )

    def require_supabase(self) -> None:
        """Raise ConfigurationError unless Supabase credentials are set"""
        self._require(
            supabase_url=self.supabase_url,
            supabase_service_role_key=self.supabase_service_role_key,
        )

    def require_master(self) -> None:
        self._require(master_email=self.master_email)

    def is_master(self, email: str) -> bool:
        """Case-insensitive comparison against the configured master account"""
        if not email or not self.master_email:
            return False
        return email.strip().lower() == self.master_email.strip().lower()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
