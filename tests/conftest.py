from collections.abc import Callable, Iterator

import pytest

from schematch.config import Settings, get_settings
from schematch.standard import clear_compiled_cache


@pytest.fixture(autouse=True)
def _fresh_state() -> Iterator[None]:
    get_settings.cache_clear()
    clear_compiled_cache()
    yield
    get_settings.cache_clear()
    clear_compiled_cache()


@pytest.fixture
def override_settings(monkeypatch: pytest.MonkeyPatch) -> Callable[..., Settings]:
    """Set SCHEMATCH_* environment variables and return the reloaded settings."""

    def apply(**values: object) -> Settings:
        for name, value in values.items():
            monkeypatch.setenv(f"SCHEMATCH_{name}", str(value))
        get_settings.cache_clear()
        return get_settings()

    return apply
