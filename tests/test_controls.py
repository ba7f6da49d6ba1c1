"""Tests for channel-level control helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from focusrite_control.controls import DeviceControls, pan_to_device, select_device
from focusrite_control.models import Device


@pytest.fixture
def session(registry):
    """Mock session backed by a real registry."""
    session = MagicMock()
    session.get_device.side_effect = registry.get_device
    session.get_item_value.side_effect = registry.get_item_value

    async def set_value(device_id, item_id, value):
        registry.set_local_value(device_id, item_id, str(value).lower() if isinstance(value, bool) else str(value))
        return True

    async def toggle_value(device_id, item_id):
        current = registry.get_item_value(device_id, item_id)
        return await set_value(device_id, item_id, "false" if current in ("true", "1") else "true")

    session.set_value = AsyncMock(side_effect=set_value)
    session.toggle_value = AsyncMock(side_effect=toggle_value)
    return session


@pytest.fixture
def controls(session):
    return DeviceControls(session, "1")


class TestPan:
    """Tests for pan_to_device()."""

    @pytest.mark.parametrize(
        ("pan", "value"),
        [(-100, 0), (0, 32768), (100, 65535), (50, 49151), (-150, 0), (150, 65535)],
    )
    def test_mapping(self, pan, value):
        assert pan_to_device(pan) == value


class TestSelectDevice:
    """Tests for select_device()."""

    def test_hint(self):
        devices = [Device(id="1", name="Scarlett 2i2"), Device(id="2", name="Clarett 8Pre")]
        assert select_device(devices, "clarett").id == "2"
        assert select_device(devices).id == "1"
        assert select_device(devices, "missing") is None
        assert select_device([]) is None


class TestMixControls:
    """Tests for mix strip helpers."""

    @pytest.mark.asyncio
    async def test_mute_input_on(self, controls, session):
        assert await controls.mute_input(1, 1, "on")
        session.set_value.assert_awaited_once_with("1", "55", True)

    @pytest.mark.asyncio
    async def test_mute_input_toggle(self, controls, session):
        assert await controls.mute_input(2, 1)  # currently "true"
        session.toggle_value.assert_awaited_once_with("1", "59")
        assert not controls.is_active("59")

    @pytest.mark.asyncio
    async def test_solo_missing_is_not_sent(self, controls, session):
        """Test a strip without solo logs and sends nothing."""
        assert not await controls.solo_input(2, 1, "on")
        session.set_value.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_out_of_range_channel(self, controls, session):
        assert not await controls.mute_input(9, 1, "on")
        assert not await controls.mute_input(1, 3, "on")
        session.set_value.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_set_fader_sends_db(self, controls, session):
        assert await controls.set_fader(2, 1, -12.5)
        session.set_value.assert_awaited_once_with("1", "58", -12.5)

    @pytest.mark.asyncio
    async def test_set_pan(self, controls, session):
        assert await controls.set_pan(1, 1, 100)
        session.set_value.assert_awaited_once_with("1", "54", 65535)

    @pytest.mark.asyncio
    async def test_invalid_state(self, controls):
        with pytest.raises(ValueError):
            await controls.mute_input(1, 1, "maybe")  # type: ignore[arg-type]


class TestOutputControls:
    """Tests for output and monitor helpers."""

    @pytest.mark.asyncio
    async def test_output_volume(self, controls, session):
        assert await controls.set_output_volume(1, -3)
        session.set_value.assert_awaited_once_with("1", "71", -3)

    @pytest.mark.asyncio
    async def test_mute_line_output(self, controls, session):
        assert await controls.mute_output(0, "on")
        session.set_value.assert_awaited_once_with("1", "72", True)

    @pytest.mark.asyncio
    async def test_mute_monitor_output_targets_monitoring(self, controls, session):
        """Test a monitor output mutes through the monitoring block."""
        assert await controls.mute_output(1, "on")
        session.set_value.assert_awaited_once_with("1", "83", True)
        assert controls.is_active("83")

    @pytest.mark.asyncio
    async def test_dim(self, controls, session):
        assert await controls.set_dim("toggle")
        session.toggle_value.assert_awaited_once_with("1", "82")

    @pytest.mark.asyncio
    async def test_unknown_device(self, session):
        controls = DeviceControls(session, "missing")
        assert not await controls.set_dim("on")


class TestHardwareControls:
    """Tests for hardware input helpers."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "item_id"),
        [
            ("set_air", "12"),
            ("set_phantom", "13"),
            ("set_pad", "14"),
            ("set_stereo_link", "18"),
        ],
    )
    async def test_switches(self, controls, session, method, item_id):
        assert await getattr(controls, method)(1, "on")
        session.set_value.assert_awaited_once_with("1", item_id, True)

    @pytest.mark.asyncio
    async def test_missing_hardware_control(self, controls, session):
        assert not await controls.set_phantom(2, "on")
        session.set_value.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_set_mode_valid(self, controls, session):
        assert await controls.set_mode(1, "Inst")
        session.set_value.assert_awaited_once_with("1", "11", "Inst")

    @pytest.mark.asyncio
    async def test_set_mode_rejects_unsupported(self, controls, session):
        """Test a mode outside the channel's values is not sent."""
        assert not await controls.set_mode(2, "Inst")
        session.set_value.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cycle_mode_wraps(self, controls):
        """Test cycling Mic to Line and back to Mic."""
        await controls.set_mode(2, "Mic")
        assert await controls.cycle_mode(2)
        assert controls.is_active("21") is False
        assert controls.device.get_item_value("21") == "Line"

        assert await controls.cycle_mode(2)
        assert controls.device.get_item_value("21") == "Mic"

    @pytest.mark.asyncio
    async def test_cycle_mode_unknown_value_starts_at_first(self, controls, registry):
        registry.set_local_value("1", "11", "Weird")
        assert await controls.cycle_mode(1)
        assert registry.get_item_value("1", "11") == "Mic"

    @pytest.mark.asyncio
    async def test_cycle_mode_missing_value_advances_from_first(self, controls, registry):
        registry.get_device("1").items["11"].value = None
        assert await controls.cycle_mode(1)
        assert registry.get_item_value("1", "11") == "Inst"
