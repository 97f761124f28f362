import pytest
from pydantic import ValidationError

from indexkit.config import SearchConfig, Settings
from indexkit.indexing.index import SearchIndex


def test_defaults_leave_forwarding_and_cap_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir("/")
    settings = Settings()
    assert settings.search.batch_size == 1000
    assert settings.search.wait_task_time_before_retry == 0.1
    assert settings.search.default_forward_to_replicas is None
    assert settings.search.max_wait_attempts is None
    assert settings.app.transport == "stdio"


def test_nested_env_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir("/")
    monkeypatch.setenv("INDEXKIT_SEARCH__BATCH_SIZE", "250")
    monkeypatch.setenv("INDEXKIT_SEARCH__DEFAULT_FORWARD_TO_REPLICAS", "true")
    monkeypatch.setenv("INDEXKIT_SEARCH__MAX_WAIT_ATTEMPTS", "40")
    monkeypatch.setenv("INDEXKIT_APP__LOG_LEVEL", "DEBUG")

    settings = Settings()

    assert settings.search.batch_size == 250
    assert settings.search.default_forward_to_replicas is True
    assert settings.search.max_wait_attempts == 40
    assert settings.app.log_level == "DEBUG"


def test_batch_size_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        SearchConfig(batch_size=0)


def test_index_builds_waiter_from_config() -> None:
    cfg = SearchConfig(wait_task_time_before_retry=0.5, max_wait_attempts=3)
    index = SearchIndex("products", object(), cfg)  # type: ignore[arg-type]
    waiter = index._waiter
    assert waiter.base_interval == 0.5
    assert waiter.max_attempts == 3
    assert index.with_name("other")._waiter is waiter
