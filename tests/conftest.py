from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _serial_env(monkeypatch):
    # keep runs single-rank and on the numpy backend unless a test opts in
    monkeypatch.setenv("PBCERI_COMM", "serial")
    monkeypatch.setenv("PBCERI_MME_BACKEND", "python")
    monkeypatch.delenv("PBCERI_VERBOSE", raising=False)
