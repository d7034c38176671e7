# Logging adapter for application-wide logging
from execmon.adapters.logging_adapter import LoggingAdapter

from pydantic import HttpUrl, field_validator
from pydantic_settings import BaseSettings
from rich import print

from execmon.core.interfaces.logging import LoggingPort

# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class ExecmonSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"  # unknown environment variables are ignored
    }
    EXECMON_LOG_LEVEL: str = "INFO"
    EXECMON_API_BASE_URL: HttpUrl = HttpUrl("http://localhost:3000/api")
    EXECMON_STATUS_PATH_TEMPLATE: str = "/executions/{job_id}"
    EXECMON_POLL_INTERVAL_MS: int = 3000
    EXECMON_AUTO_STOP: bool = True
    # total seconds per status request, enforced by the HTTP adapter
    EXECMON_HTTP_TIMEOUT: float = 10.0

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("Execmon Settings:")
        print(self)

    @field_validator("EXECMON_STATUS_PATH_TEMPLATE", mode="after")
    @classmethod
    def ensure_job_id_placeholder(cls, value: str) -> str:
        """The status path must contain a {job_id} placeholder."""
        if "{job_id}" not in value:
            raise ValueError("EXECMON_STATUS_PATH_TEMPLATE must contain '{job_id}'")
        return value


app_settings = ExecmonSettings()

logger: LoggingPort = LoggingAdapter("execmon", app_settings.EXECMON_LOG_LEVEL)
