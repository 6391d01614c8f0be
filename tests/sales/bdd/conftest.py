"""Shared BDD fixtures for the sales domain."""

import pytest


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}
