from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class DispatcherSettings(BaseSettings):
    """Configuration for the message dispatcher loop."""
    BATCH_SIZE: int = 32
    POLL_INTERVAL_SECONDS: float = 1.0
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_dispatcher_settings() -> DispatcherSettings:
    """Return a fresh dispatcher settings instance."""
    return DispatcherSettings()
