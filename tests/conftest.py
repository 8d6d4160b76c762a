from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.repo_builder import GoRepoBuilder


@pytest.fixture
def go_repo(tmp_path: Path) -> GoRepoBuilder:
    """Provide a Go project builder rooted at the pytest tmp_path."""
    return GoRepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def reset_protondocs_logging() -> Iterator[None]:
    """Drop handlers installed by CLI runs so later tests do not write to stale streams."""
    yield
    logger = logging.getLogger("protondocs")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
