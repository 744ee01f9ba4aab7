"""Tests for the fire-time reminder gate."""

from datetime import datetime, time
from zoneinfo import ZoneInfo

import pytest

from hydranag.engine.gate import (
    GateOutcome,
    ReminderGate,
    deep_link,
    notification_body,
    parse_deep_link,
)
from hydranag.engine.planner import ReminderPayload

UTC = ZoneInfo("UTC")
TWO_PM = ReminderPayload(dose_ml=200, scheduled_time=time(14, 0))
TWO_PM_ID = 14 * 3600


def at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2026, 3, 1, hour, minute, second, tzinfo=UTC)


@pytest.mark.asyncio
async def test_shows_within_tolerance(dispatcher):
    """Test a reminder one minute late is still shown."""
    gate = ReminderGate(dispatcher)

    outcome = await gate.fire(1, TWO_PM_ID, TWO_PM, at(14, 1))

    assert outcome is GateOutcome.SHOWN
    assert dispatcher.shown == [
        (1, TWO_PM_ID, "Time to Hydrate!", "Drink 0.2L of water now", "add_water_intake/200.0")
    ]


@pytest.mark.asyncio
async def test_partial_minutes_do_not_count(dispatcher):
    """Test 1m59s late is one whole minute, so still shown."""
    gate = ReminderGate(dispatcher)

    assert await gate.fire(1, TWO_PM_ID, TWO_PM, at(14, 1, 59)) is GateOutcome.SHOWN


@pytest.mark.asyncio
async def test_suppresses_stale_reminder(dispatcher):
    """Test a reminder two minutes late is dropped."""
    gate = ReminderGate(dispatcher)

    outcome = await gate.fire(1, TWO_PM_ID, TWO_PM, at(14, 2))

    assert outcome is GateOutcome.SUPPRESSED_STALE
    assert outcome.suppressed
    assert dispatcher.shown == []


@pytest.mark.asyncio
async def test_suppresses_early_reminder(dispatcher):
    """Test the tolerance applies before the scheduled time too."""
    gate = ReminderGate(dispatcher)

    assert await gate.fire(1, TWO_PM_ID, TWO_PM, at(13, 57)) is GateOutcome.SUPPRESSED_STALE
    assert await gate.fire(1, TWO_PM_ID, TWO_PM, at(13, 59)) is GateOutcome.SHOWN


@pytest.mark.asyncio
async def test_suppresses_duplicate(dispatcher):
    """Test an id that is already showing is not shown again."""
    gate = ReminderGate(dispatcher)
    dispatcher.active.add((1, TWO_PM_ID))

    outcome = await gate.fire(1, TWO_PM_ID, TWO_PM, at(14, 0))

    assert outcome is GateOutcome.SUPPRESSED_DUPLICATE
    assert dispatcher.shown == []


@pytest.mark.asyncio
async def test_second_delivery_of_same_job_is_duplicate(dispatcher):
    """Test at-least-once redelivery shows only one notification."""
    gate = ReminderGate(dispatcher)

    first = await gate.fire(1, TWO_PM_ID, TWO_PM, at(14, 0))
    second = await gate.fire(1, TWO_PM_ID, TWO_PM, at(14, 0, 30))

    assert first is GateOutcome.SHOWN
    assert second is GateOutcome.SUPPRESSED_DUPLICATE
    assert len(dispatcher.shown) == 1


@pytest.mark.asyncio
async def test_disabled_notifications_suppress_everything(dispatcher):
    """Test the global notifications flag wins over everything else."""
    dispatcher.enabled = False
    gate = ReminderGate(dispatcher)

    outcome = await gate.fire(1, TWO_PM_ID, TWO_PM, at(14, 0))

    assert outcome is GateOutcome.SUPPRESSED_DISABLED
    assert dispatcher.shown == []


@pytest.mark.asyncio
async def test_custom_tolerance(dispatcher):
    """Test a wider tolerance window."""
    gate = ReminderGate(dispatcher, tolerance_minutes=5)

    assert await gate.fire(1, TWO_PM_ID, TWO_PM, at(14, 5)) is GateOutcome.SHOWN


def test_deep_link_round_trip():
    """Test the intake deep link format."""
    assert deep_link(250) == "add_water_intake/250.0"
    assert parse_deep_link("add_water_intake/250.0") == 250
    assert parse_deep_link("add_water_intake/0.0") == 0


def test_parse_deep_link_rejects_other_links():
    """Test that unrelated callback data is not mistaken for a dose."""
    with pytest.raises(ValueError):
        parse_deep_link("done:5")

    with pytest.raises(ValueError):
        parse_deep_link("add_water_intake/")

    with pytest.raises(ValueError):
        parse_deep_link("add_water_intake/lots")


def test_notification_body():
    """Test dose shown in litres with one decimal."""
    assert notification_body(200) == "Drink 0.2L of water now"
    assert notification_body(1500) == "Drink 1.5L of water now"


@pytest.mark.asyncio
async def test_shows_on_time_after_dst_change(dispatcher):
    """Test a reminder firing on time after clocks change is not stale."""
    berlin = ZoneInfo("Europe/Berlin")
    gate = ReminderGate(dispatcher)
    payload = ReminderPayload(dose_ml=200, scheduled_time=time(4, 0))

    outcome = await gate.fire(1, 4 * 3600, payload, datetime(2026, 3, 29, 4, 0, 30, tzinfo=berlin))

    assert outcome is GateOutcome.SHOWN


def test_parse_deep_link_rejects_out_of_range_dose():
    """Test infinite or non-numeric doses are rejected as bad links."""
    with pytest.raises(ValueError):
        parse_deep_link("add_water_intake/inf")

    with pytest.raises(ValueError):
        parse_deep_link("add_water_intake/nan")
