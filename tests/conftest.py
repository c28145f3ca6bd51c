"""공용 Fixtures — 설정 캐시 초기화."""

import pytest

from impact_scanner.domain.config import get_config


@pytest.fixture(autouse=True)
def _clear_config_cache():
    get_config.cache_clear()
    yield
    get_config.cache_clear()
