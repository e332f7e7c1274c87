import os
import sys

import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture(autouse=True)
def _clear_scheduling_env(monkeypatch):
    for name in (
        "SLOT_MINUTES",
        "LOOKAHEAD_DAYS",
        "MAX_FREE_SLOTS",
        "MAX_COMMON_SLOTS",
        "EXPLICIT_TIME_TOLERANCE_MINUTES",
        "METRIC_NAMESPACE",
    ):
        monkeypatch.delenv(name, raising=False)
