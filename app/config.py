from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # An empty variable (e.g. `PORT=` in a container env file) keeps the default.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_ignore_empty=True)

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    app_name: str = Field(default="Cloud-Native Pipeline Demo", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    metrics_path: str = Field(default="/metrics", alias="METRICS_PATH")

    @property
    def welcome_message(self) -> str:
        return f"Welcome to {self.app_name}!"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
