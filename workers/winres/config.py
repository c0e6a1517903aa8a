"""
Pipeline configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pipeline settings, read from ``WINRES_*`` environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="WINRES_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Toolchain discovery
    TOOLKIT_PATH: str | None = None  # MinGW bin dir, or SDK root / rc.exe dir
    SDK_REGISTRY_KEY: str = r"HKLM\SOFTWARE\Microsoft\Windows Kits\Installed Roots"
    REG_QUERY_TIMEOUT: int = 10  # seconds

    # Tool invocation
    TOOL_TIMEOUT: int = 120  # seconds per rc/windres/ar call

    # Outputs
    REPORT_FILENAME: str = "winres_report.json"


settings = Settings()
