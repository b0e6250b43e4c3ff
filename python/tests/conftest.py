"""
Pytest configuration and fixtures for evmtrace tests.
"""
import pytest

from evmtrace.session import TraceSession
from evmtrace.transport import ConnectionManager, TransportConfig
from trace_stubs import FakeConnector, ManualScheduler


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def manager(connector, scheduler):
    return ConnectionManager(TransportConfig(reconnect_delay=2.0), connector=connector, scheduler=scheduler)


@pytest.fixture
def session(manager):
    trace_session = TraceSession(manager)
    yield trace_session
    trace_session.stop()
