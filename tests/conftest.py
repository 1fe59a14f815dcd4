# tests/conftest.py
from datetime import datetime, timedelta
import itertools

import pytest

from workbook_io import Workspace

class StepClock:
    """Fixed start time that advances one second per call."""
    def __init__(self, start=datetime(2024, 3, 1, 9, 30, 0)):
        self._ticks = itertools.count()
        self.start = start

    def __call__(self):
        return self.start + timedelta(seconds=next(self._ticks))

@pytest.fixture
def ws():
    return Workspace.in_memory(clock=StepClock())


@pytest.fixture
def make_ws():
    """Fresh in-memory workspaces, each with its own clock starting at the same instant."""
    def _make(**kw):
        kw.setdefault("clock", StepClock())
        return Workspace.in_memory(**kw)
    return _make
