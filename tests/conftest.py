import logging

import pytest

logger = logging.getLogger(__name__)


class service:
    def __init__(self) -> None:
        self.running = False

    def run(self) -> None:
        self.running = True

    def stop(self, wait: bool) -> None:
        self.running = False

    def pause(self) -> None:
        self.running = False

    def is_running(self) -> bool:
        return self.running

    def info(self) -> str:
        return f"Running: {self.running}"

    def _reset(self) -> None:
        self.running = False


class monitor:
    def Display(self) -> str:
        logger.info("Display()")
        return "Display()"


@pytest.fixture
def svc() -> service:
    return service()


@pytest.fixture
def mon() -> monitor:
    return monitor()
