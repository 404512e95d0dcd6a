"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "loadcompare"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    host: str = "0.0.0.0"
    port: int = 8090

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
