from __future__ import annotations

import pytest

from tests.helpers.link_store import FakeLinkStore


@pytest.fixture
def store() -> FakeLinkStore:
    return FakeLinkStore()
