"""Shared fixtures."""
from __future__ import annotations

import pytest

from beacon.config import AgentConfig
from beacon.controller import RegistrationController
from beacon.errors import ProtocolError, TransportError

from doubles import FakeTimer


@pytest.fixture()
def config() -> AgentConfig:
    return AgentConfig(
        app_name="orders",
        http_port=8181,
        jmx_host="orders.internal",
        jmx_port=9091,
        registry_url="http://registry.internal:8181",
        authorization="Basic abc",
        callback_host="orders.internal",
        retry_interval=5.0,
    )


@pytest.fixture()
def make_controller(config: AgentConfig):
    """Build a controller wired to a FakeTimer; returns ``(controller, timer)``.

    The timer is None until the controller has been started.
    """
    def _make(registry, environ=None, start=True):
        timers: list[FakeTimer] = []

        def factory(interval, callback):
            timer = FakeTimer(interval, callback)
            timers.append(timer)
            return timer

        controller = RegistrationController(
            config, registry, timer_factory=factory,
            environ={} if environ is None else environ,
        )
        if start:
            controller.start()
        return controller, (timers[0] if timers else None)

    return _make


@pytest.fixture()
def transport_error() -> TransportError:
    return TransportError("connection refused")


@pytest.fixture()
def protocol_error() -> ProtocolError:
    return ProtocolError("HTTP 500", status=500)
