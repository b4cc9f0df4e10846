# tests/test_notification_gate.py

from __future__ import annotations

from pathlib import Path

import pytest

from task_reminders.core.errors import CapabilityUnsupported, PermissionDenied
from task_reminders.tasks.client_state import ClientStateFile
from task_reminders.tasks.notification_gate import NOTIFY_ENABLED_KEY, NotificationGate
from task_reminders.tasks.task_models import PermissionState

from .fakes import FakeNotificationSink


def _gate(client_state: ClientStateFile, sink) -> NotificationGate:
    gate = NotificationGate(client_state, sink)
    gate.init()
    return gate


@pytest.mark.asyncio
async def test_enable_with_granted_permission_skips_prompt(client_state) -> None:
    sink = FakeNotificationSink(permission=PermissionState.GRANTED)
    gate = _gate(client_state, sink)

    await gate.enable()

    assert gate.is_enabled() is True
    assert gate.is_authorized() is True
    assert sink.requests == 0
    assert client_state.get(NOTIFY_ENABLED_KEY) == "true"


@pytest.mark.asyncio
async def test_enable_asks_when_not_asked(client_state) -> None:
    sink = FakeNotificationSink(permission=PermissionState.NOT_ASKED, decision=PermissionState.GRANTED)
    gate = _gate(client_state, sink)

    await gate.enable()

    assert sink.requests == 1
    assert gate.is_enabled() is True
    assert gate.last_permission == PermissionState.GRANTED


@pytest.mark.asyncio
async def test_enable_denied_persists_false(client_state) -> None:
    sink = FakeNotificationSink(permission=PermissionState.NOT_ASKED, decision=PermissionState.DENIED)
    gate = _gate(client_state, sink)

    with pytest.raises(PermissionDenied):
        await gate.enable()

    assert gate.is_enabled() is False
    assert client_state.get(NOTIFY_ENABLED_KEY) == "false"


@pytest.mark.asyncio
@pytest.mark.parametrize("sink", [None, FakeNotificationSink(supported=False)])
async def test_enable_without_capability_raises(client_state, sink) -> None:
    gate = _gate(client_state, sink)

    with pytest.raises(CapabilityUnsupported):
        await gate.enable()

    assert gate.is_enabled() is False
    assert gate.is_authorized() is False


@pytest.mark.asyncio
async def test_enable_then_disable_keeps_authorization(client_state) -> None:
    sink = FakeNotificationSink(permission=PermissionState.NOT_ASKED, decision=PermissionState.GRANTED)
    gate = _gate(client_state, sink)

    await gate.enable()
    gate.disable()

    assert gate.is_enabled() is False
    assert sink.permission_state() == PermissionState.GRANTED
    assert client_state.get(NOTIFY_ENABLED_KEY) == "false"


@pytest.mark.asyncio
async def test_enabled_flag_survives_restart(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    sink = FakeNotificationSink()
    await _gate(ClientStateFile(path), sink).enable()

    assert _gate(ClientStateFile(path), sink).is_enabled() is True


@pytest.mark.parametrize("raw", ["yes", "{", "1", '"true"'])
def test_corrupt_flag_means_disabled(client_state, raw: str) -> None:
    client_state.set(NOTIFY_ENABLED_KEY, raw)
    assert _gate(client_state, FakeNotificationSink()).is_enabled() is False
