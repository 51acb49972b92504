from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from resourcevet.config import (
    MissingConfigurationError,
    get_database_config,
    get_google_maps_config,
    get_import_defaults,
    get_llm_config,
    get_publication_config,
    get_referral211_config,
    get_storage_config,
)
from resourcevet.config.google_maps import cacheable_maps_payload
from resourcevet.config.http_resilience import NO_RETRY

if TYPE_CHECKING:
    from pathlib import Path


def test_google_maps_config_requires_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GOOGLE_MAPS_KEY", raising=False)

    with pytest.raises(MissingConfigurationError, match="GOOGLE_MAPS_KEY"):
        get_google_maps_config()


def test_google_maps_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_MAPS_KEY", "maps-key")

    config = get_google_maps_config()

    assert config.api_key == "maps-key"
    assert config.resilience.base_url == "https://maps.googleapis.com/maps/api/"
    assert config.resilience.ratelimit is not None


def test_referral211_config_sends_api_key_header(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REFERRAL211_API_KEY", "211-key")
    monkeypatch.setenv("REFERRAL211_BASE_URL", "https://211.example.test/api/")

    config = get_referral211_config()

    assert config.resilience.base_url == "https://211.example.test/api/"
    assert config.resilience.default_headers == {"Api-Key": "211-key"}


def test_llm_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    for name in (
        "RESOURCEVET_JUDGMENT_MODEL",
        "RESOURCEVET_REPAIR_MODEL",
        "RESOURCEVET_LLM_TIMEOUT",
        "RESOURCEVET_LLM_RPM",
        "OPENAI_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)

    config = get_llm_config()

    assert config.judgment_model == "gpt-4o-mini"
    assert config.repair_model == "gpt-4o-mini"
    assert config.timeout_seconds == 30.0
    assert config.ratelimit is not None
    assert config.ratelimit.max_calls == 500
    assert config.base_url is None


def test_llm_config_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("RESOURCEVET_JUDGMENT_MODEL", "gpt-4o")
    monkeypatch.setenv("RESOURCEVET_LLM_RPM", "60")

    config = get_llm_config()

    assert config.judgment_model == "gpt-4o"
    assert config.ratelimit is not None
    assert config.ratelimit.max_calls == 60


def test_publication_config_never_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOURCEVET_PUBLICATION_URL", "https://publish.example.test/batch")
    monkeypatch.setenv("RESOURCEVET_PUBLICATION_TOKEN", "secret")

    config = get_publication_config()

    assert config.endpoint_url == "https://publish.example.test/batch"
    assert config.resilience.retry == NO_RETRY
    assert config.resilience.cache is None
    assert config.resilience.default_headers == {"Authorization": "Bearer secret"}


def test_import_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESOURCEVET_BATCH_SIZE", "25")

    assert get_import_defaults().batch_size == 25


def test_storage_config_uses_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RESOURCEVET_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("DATABASE_URI", raising=False)

    storage = get_storage_config()

    assert storage.database_path() == tmp_path.resolve() / "resourcevet.db"
    assert get_database_config().uri == f"sqlite+pysqlite:///{tmp_path.resolve() / 'resourcevet.db'}"


def test_database_uri_env_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"


def test_maps_cache_skips_error_payloads() -> None:
    assert cacheable_maps_payload({"status": "OK", "results": []})
    assert cacheable_maps_payload({"status": "ZERO_RESULTS"})
    assert not cacheable_maps_payload({"status": "OVER_QUERY_LIMIT"})
    assert not cacheable_maps_payload(["OK"])
