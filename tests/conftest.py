from __future__ import annotations

import pytest
from hypothesis import HealthCheck, settings

from sellabroad.infra import config as config_mod

# Timing healthchecks flap on loaded CI machines; they are not functional failures.
settings.register_profile(
    "sellabroad_stable",
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)

settings.load_profile("sellabroad_stable")

_ENV_KEYS = ("SELLABROAD_API_URL", "SELLABROAD_LEAD_DRY_RUN", "LOG_LEVEL", "LOG_FORMAT")


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    config_mod.reset_config_cache()
    yield
    config_mod.reset_config_cache()
