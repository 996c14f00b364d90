"""Shared fixtures for ICS module tests."""

import pytest

from custodybot.ics.encoder import ICSEncoder
from custodybot.ics.parser import ICSParser


@pytest.fixture
def parser():
    """Create ICSParser instance."""
    return ICSParser()


@pytest.fixture
def encoder(test_settings):
    """Create ICSEncoder with isolated settings."""
    return ICSEncoder(test_settings)
