from __future__ import annotations

import logging
from typing import Iterator

import pytest

from tests._fixtures.graph_builder import UnitGraphBuilder


@pytest.fixture
def graph() -> UnitGraphBuilder:
    """Provide an empty unit graph rooted at /src."""
    return UnitGraphBuilder()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Drop handlers installed by the CLI so they never outlive captured streams."""
    yield
    logger = logging.getLogger("go2make")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
