from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.story_builder import StoryProjectBuilder


@pytest.fixture
def project(tmp_path: Path) -> StoryProjectBuilder:
    """Provide a story project builder rooted at the pytest tmp_path."""
    return StoryProjectBuilder(tmp_path)
