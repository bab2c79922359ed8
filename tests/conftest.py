from __future__ import annotations

import logging

import pytest

from memwatch.core.config.models import EventBusConfig, EventLogFileConfig


@pytest.fixture
def event_log_path(tmp_path):
    return tmp_path / "eventlog.txt"


@pytest.fixture
def event_log_cfg(event_log_path):
    # fsync is covered separately; keep the common path fast
    return EventLogFileConfig(path=str(event_log_path), fsync=False)


@pytest.fixture
def bus():
    from memwatch.core.events.bus import EventBus

    return EventBus(cfg=EventBusConfig())


@pytest.fixture(autouse=True)
def _reset_memwatch_logger():
    yield
    logger = logging.getLogger("memwatch")
    for h in list(logger.handlers):
        h.close()
        logger.removeHandler(h)
