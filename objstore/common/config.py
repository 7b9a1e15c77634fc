from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

ADDRESSING_STYLES: tuple[str, ...] = ("path", "virtual", "auto")


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


def _as_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _as_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class Settings:
    STORAGE_ENDPOINT: str | None = None
    STORAGE_REGION: str | None = None
    STORAGE_ACCESS_KEY_ID: str | None = None
    STORAGE_SECRET_ACCESS_KEY: str | None = None
    STORAGE_ADDRESSING_STYLE: str = "path"
    STORAGE_PRESIGN_EXPIRES_SECONDS: int = 3600
    STORAGE_MULTIPART_THRESHOLD_BYTES: int = 8 * 1024 * 1024
    STORAGE_PART_SIZE_BYTES: int = 8 * 1024 * 1024
    STORAGE_HTTP_CHUNK_SIZE: int = 64 * 1024
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        style = (self.STORAGE_ADDRESSING_STYLE or "").strip().lower()
        if style not in ADDRESSING_STYLES:
            raise ValueError(
                f"STORAGE_ADDRESSING_STYLE must be one of {', '.join(ADDRESSING_STYLES)}."
            )
        self.STORAGE_ADDRESSING_STYLE = style
        for name in (
            "STORAGE_PRESIGN_EXPIRES_SECONDS",
            "STORAGE_MULTIPART_THRESHOLD_BYTES",
            "STORAGE_PART_SIZE_BYTES",
            "STORAGE_HTTP_CHUNK_SIZE",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            STORAGE_ENDPOINT=_as_optional(os.environ.get("STORAGE_ENDPOINT")),
            STORAGE_REGION=_as_optional(os.environ.get("STORAGE_REGION")),
            STORAGE_ACCESS_KEY_ID=_as_optional(os.environ.get("STORAGE_ACCESS_KEY_ID")),
            STORAGE_SECRET_ACCESS_KEY=_as_optional(
                os.environ.get("STORAGE_SECRET_ACCESS_KEY")
            ),
            STORAGE_ADDRESSING_STYLE=os.environ.get(
                "STORAGE_ADDRESSING_STYLE", cls.STORAGE_ADDRESSING_STYLE
            ),
            STORAGE_PRESIGN_EXPIRES_SECONDS=_as_int(
                os.environ.get("STORAGE_PRESIGN_EXPIRES_SECONDS"),
                cls.STORAGE_PRESIGN_EXPIRES_SECONDS,
            ),
            STORAGE_MULTIPART_THRESHOLD_BYTES=_as_int(
                os.environ.get("STORAGE_MULTIPART_THRESHOLD_BYTES"),
                cls.STORAGE_MULTIPART_THRESHOLD_BYTES,
            ),
            STORAGE_PART_SIZE_BYTES=_as_int(
                os.environ.get("STORAGE_PART_SIZE_BYTES"), cls.STORAGE_PART_SIZE_BYTES
            ),
            STORAGE_HTTP_CHUNK_SIZE=_as_int(
                os.environ.get("STORAGE_HTTP_CHUNK_SIZE"), cls.STORAGE_HTTP_CHUNK_SIZE
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
