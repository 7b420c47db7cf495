from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogFormat = Literal["json", "console"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TXC_STOP_INDEX_",
        env_file=".env",
        extra="ignore",
    )

    data_root: Path = Field(default=Path("data"))
    downloads_dir: Path | None = Field(default=None)
    reference_dir: Path | None = Field(default=None)
    out_dir: Path | None = Field(default=None)
    run_root: Path = Field(default=Path("_runs"))

    noc_csv_name: str = Field(default="noc.csv")
    overrides_name: str = Field(default="operator-overrides.json")
    output_name: str = Field(default="stop_to_services.json")

    shard_prefix_len: int = Field(default=4, ge=1)
    timezone: str = Field(default="Europe/London")

    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="console")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings()
