from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_CHUNK_SIZE = 1024 * 1024


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


@dataclass
class Settings:
    S3_ENDPOINT_URL: str | None = None
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_ADDRESSING_STYLE: str = "path"
    S3_USE_SSL: bool = True
    S3_CHUNK_SIZE: int = DEFAULT_CHUNK_SIZE
    S3_CONNECT_TIMEOUT: float = 10.0
    S3_READ_TIMEOUT: float = 60.0
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        if self.S3_CHUNK_SIZE <= 0:
            raise ValueError("S3_CHUNK_SIZE must be a positive number of bytes.")
        if self.S3_CONNECT_TIMEOUT <= 0 or self.S3_READ_TIMEOUT <= 0:
            raise ValueError("S3_CONNECT_TIMEOUT and S3_READ_TIMEOUT must be positive seconds.")
        if self.S3_ADDRESSING_STYLE.strip().lower() not in {"path", "virtual", "auto"}:
            raise ValueError("S3_ADDRESSING_STYLE must be one of: path, virtual, auto.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY"),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_CHUNK_SIZE=int(os.environ.get("S3_CHUNK_SIZE", cls.S3_CHUNK_SIZE)),
            S3_CONNECT_TIMEOUT=float(os.environ.get("S3_CONNECT_TIMEOUT", cls.S3_CONNECT_TIMEOUT)),
            S3_READ_TIMEOUT=float(os.environ.get("S3_READ_TIMEOUT", cls.S3_READ_TIMEOUT)),
            LOG_LEVEL=os.environ.get("S3SHIM_LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_environment()
