from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Signing client settings loaded from environment variables.

    REMOTESIGN_SERVER_URL is required; the CLI refuses to run without it.
    The HTTP timeout must comfortably exceed the server's signing timeout
    because the sign call blocks until the tool finishes.
    """

    model_config = SettingsConfigDict(
        env_prefix="REMOTESIGN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    server_url: str = ""

    # Parent directory for the per-invocation transient area.
    # None means the system temp directory.
    temp_dir: Optional[str] = None

    request_timeout_seconds: float = 600.0

    debug: bool = False


def get_settings() -> ClientSettings:
    return ClientSettings()
