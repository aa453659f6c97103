"""
Pytest configuration for CI tests
Provides common fixtures (fake directory, notifier, remote subscriptions)
"""
from unittest.mock import AsyncMock, Mock

import pytest

from kickapi.subscriptions import DESIRED_SUBSCRIPTIONS, RemoteSubscription


@pytest.fixture
def make_sub():
    """Factory for RemoteSubscription records"""
    def _make(sub_id, event, version=1):
        return RemoteSubscription(id=sub_id, event=event, version=version)
    return _make


@pytest.fixture
def all_present(make_sub):
    """Every desired subscription registered exactly once (ids "1".."9")"""
    return [
        make_sub(str(i), wanted.name, wanted.version)
        for i, wanted in enumerate(DESIRED_SUBSCRIPTIONS, start=1)
    ]


@pytest.fixture
def directory():
    """Remote subscription directory with an empty list and successful calls"""
    fake = Mock()
    fake.list = AsyncMock(return_value=[])
    fake.create = AsyncMock(return_value=[])
    fake.delete = AsyncMock(return_value=None)
    fake.delete_one = AsyncMock(return_value=None)
    return fake


@pytest.fixture
def notifier():
    """Alert sink (critical + chat feed)"""
    return Mock()
