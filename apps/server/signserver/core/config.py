from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SDK_BIN_DIR = r"C:\Program Files (x86)\Windows Kits\10\bin"


class Settings(BaseSettings):
    """Signing server settings loaded from environment variables.

    storage_dir holds uploaded request archives and generated result
    archives until the client removes them. work_dir is the parent of the
    per-request extraction directories the signing tool runs in.

    Signing tool discovery
    ──────────────────────
    - signtool_path set  -> used as-is, no discovery
    - otherwise          -> well-known x64/x86 paths under sdk_bin_dir,
                           then the newest versioned `10.*` SDK directory
    """

    model_config = SettingsConfigDict(
        env_prefix="REMOTESIGN_SERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Listen address
    host: str = "0.0.0.0"
    port: int = 8000

    # Storage
    storage_dir: str = "Upload"
    work_dir: str = "Temp"

    # Signing tool
    signtool_path: Optional[str] = None
    sdk_bin_dir: str = DEFAULT_SDK_BIN_DIR
    sign_timeout_seconds: int = 300

    # Sentry: leave blank to disable error capture.
    sentry_dsn: str = ""

    # App
    debug: bool = True


def get_settings() -> Settings:
    return Settings()
