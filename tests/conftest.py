"""
Shared test configuration.

Settings reads WEBFINGER_* environment variables, so they are cleared for
every test to keep results independent of the shell running the suite.
"""

import os

import pytest


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in list(os.environ):
        if name.upper().startswith("WEBFINGER_"):
            monkeypatch.delenv(name)
