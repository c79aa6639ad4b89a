from __future__ import annotations

import os

os.environ.setdefault("ARBA_LOG_TO_FILE", "0")

import pytest

from fakes import FakeSession


@pytest.fixture()
def fake_session_factory():
    def _build(**kwargs) -> FakeSession:
        return FakeSession(**kwargs)

    return _build
