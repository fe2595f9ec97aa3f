import os

import pytest


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep PRODSCRAPE_* variables from the shell out of the settings."""
    for name in list(os.environ):
        if name.upper().startswith("PRODSCRAPE_"):
            monkeypatch.delenv(name)
