from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QRSCAN_", env_file=".env", extra="ignore")

    scanner_config_path: str = Field(default="config/scanner.yaml", description="YAML detector/scheduler config")
    log_level: str = Field(default="INFO", description="Root log level")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, description="Largest accepted image body")

settings = Settings()
