from __future__ import annotations

import math

import pytest
from conftest import FakeWhatsGpsBackend

from pywhatsgps import (
    AccountConfig,
    MotionInterpolator,
    PollingOrchestrator,
    TrackerConfig,
    WhatsGpsClient,
    focus_target,
)
from pywhatsgps._api.login import LOGIN_VARIANTS
from pywhatsgps._constants import LOGIN_ENDPOINT


@pytest.fixture
def config(monkeypatch: pytest.MonkeyPatch) -> TrackerConfig:
    monkeypatch.setenv("WHATSGPS_LOGIN_A", "login-a")
    monkeypatch.setenv("WHATSGPS_PASS_A", "pass-a")
    monkeypatch.setenv("WHATSGPS_LOGIN_B", "login-b")
    monkeypatch.setenv("WHATSGPS_PASS_B", "wrong")
    return TrackerConfig.from_env(animation_duration=0.01)


@pytest.fixture
def scenario_backend(backend: FakeWhatsGpsBackend) -> FakeWhatsGpsBackend:
    backend.accounts.update({"login-a": "pass-a", "login-b": "pass-b"})
    backend.reports["login-a"] = [{"carId": 7, "lat": 52.1, "lon": 19.2, "speed": 30}]
    return backend


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_one_account_succeeds_other_fails_login(
    config: TrackerConfig,
    scenario_backend: FakeWhatsGpsBackend,
) -> None:
    async with WhatsGpsClient(config, transport=scenario_backend) as client:
        orchestrator = PollingOrchestrator(client, config.static_accounts(), interval=config.poll_interval)

        first = await orchestrator.run_cycle()

        assert len(first.entities) == 1
        entity = first.entities[0]
        assert entity.id == "A::7"
        assert entity.source == "A"
        assert entity.name == "A"
        assert entity.lat == pytest.approx(52.1)
        assert entity.lng == pytest.approx(19.2)
        assert entity.desc == "speed: 30 km/h"
        assert first.error is not None
        assert "Login failed for B" in first.error
        assert orchestrator.error == first.error
        assert "B" not in orchestrator.sessions

        logins_after_first = scenario_backend.calls[LOGIN_ENDPOINT]
        assert logins_after_first == 1 + len(LOGIN_VARIANTS)

        await orchestrator.run_cycle()

    # A keeps its session; B is retried with the full variant table.
    assert scenario_backend.calls[LOGIN_ENDPOINT] == logins_after_first + len(LOGIN_VARIANTS)


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_cycle_drives_motion_and_focus(
    config: TrackerConfig,
    scenario_backend: FakeWhatsGpsBackend,
) -> None:
    scenario_backend.accounts["login-b"] = "wrong"
    scenario_backend.reports["login-b"] = [{"carId": 9, "machineName": "Van"}]

    async with WhatsGpsClient(config, transport=scenario_backend) as client:
        motion = MotionInterpolator(duration=config.animation_duration, frame_interval=0)
        orchestrator = PollingOrchestrator(
            client,
            config.static_accounts(),
            on_cycle=lambda cycle: motion.reconcile(cycle.entities),
        )

        cycle = await orchestrator.run_cycle()
        await motion.close()

    assert cycle.error is None
    assert [e.id for e in cycle.entities] == ["A::7", "B::9"]
    assert math.isnan(cycle.entities[1].lat)
    assert set(motion.displayed_positions) == {"A::7"}

    accounts = [AccountConfig(label="A", imei="login-a", password="pass-a")]
    assert focus_target(cycle.entities, {"label": "A::7"}, accounts) == cycle.entities[0]
    assert focus_target(cycle.entities, "Van", accounts) is None
