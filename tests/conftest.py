from __future__ import annotations

import pytest

from objstore.common.config import Settings, get_settings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    for name in (
        "STORAGE_ENDPOINT",
        "STORAGE_REGION",
        "STORAGE_ACCESS_KEY_ID",
        "STORAGE_SECRET_ACCESS_KEY",
        "STORAGE_ADDRESSING_STYLE",
        "STORAGE_PRESIGN_EXPIRES_SECONDS",
        "STORAGE_MULTIPART_THRESHOLD_BYTES",
        "STORAGE_PART_SIZE_BYTES",
        "STORAGE_HTTP_CHUNK_SIZE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def settings() -> Settings:
    return Settings(STORAGE_PRESIGN_EXPIRES_SECONDS=900)


