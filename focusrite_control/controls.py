"""Channel-level control helpers on top of :class:`FocusriteSession`.

Channels and mixes are numbered from 1, matching the labels on the
hardware. Output indexes are 0-based positions in ``Device.outputs``.
Every helper returns True when a write was issued and False when the
control does not exist on the current device.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Literal

from .errors import FocusriteMissingControl
from .models import DEFAULT_MODE_VALUES, Device, HardwareInput, MixInput

if TYPE_CHECKING:
    from .session import FocusriteSession

_LOGGER = logging.getLogger(__name__)

SwitchState = Literal["on", "off", "toggle"]

PAN_MIN = -100
PAN_MAX = 100
PAN_DEVICE_MAX = 65535

_TRUE_VALUES = frozenset({"true", "1"})


def pan_to_device(pan: float) -> int:
    """Map a pan position in -100..100 to the device range 0..65535."""
    pan = max(PAN_MIN, min(PAN_MAX, pan))
    return round((pan - PAN_MIN) / (PAN_MAX - PAN_MIN) * PAN_DEVICE_MAX)


def select_device(devices: Iterable[Device], name_hint: str | None = None) -> Device | None:
    """Pick a device by name.

    Returns the first device whose name contains ``name_hint``
    (case-insensitive), or the first device when no hint is given.
    """
    devices = list(devices)
    if not devices:
        return None
    if not name_hint:
        return devices[0]
    hint = name_hint.lower()
    for device in devices:
        if hint in device.name.lower():
            return device
    return None


class DeviceControls:
    """Resolve numbered channel controls on one device and write them."""

    def __init__(self, session: FocusriteSession, device_id: str) -> None:
        self._session = session
        self.device_id = device_id

    @property
    def device(self) -> Device | None:
        return self._session.get_device(self.device_id)

    def is_active(self, item_id: str) -> bool:
        """Whether a boolean item currently reads as on."""
        value = self._session.get_item_value(self.device_id, item_id)
        return (value or "").lower() in _TRUE_VALUES

    # -------------------------------------------------------------------------
    # Mixer
    # -------------------------------------------------------------------------

    async def mute_input(self, channel: int, mix: int, state: SwitchState = "toggle") -> bool:
        try:
            item_id = self._require(self._mix_input(channel, mix).mute, "mute", mix, channel)
        except FocusriteMissingControl as err:
            return self._missing(err)
        return await self._switch(item_id, state)

    async def solo_input(self, channel: int, mix: int, state: SwitchState = "toggle") -> bool:
        try:
            item_id = self._require(self._mix_input(channel, mix).solo, "solo", mix, channel)
        except FocusriteMissingControl as err:
            return self._missing(err)
        return await self._switch(item_id, state)

    async def set_fader(self, channel: int, mix: int, level_db: float) -> bool:
        """Set a mix strip fader; ``level_db`` is sent as-is (-128..+6)."""
        try:
            item_id = self._require(self._mix_input(channel, mix).gain, "fader", mix, channel)
        except FocusriteMissingControl as err:
            return self._missing(err)
        return await self._session.set_value(self.device_id, item_id, level_db)

    async def set_pan(self, channel: int, mix: int, pan: float) -> bool:
        """Set a mix strip pan from -100 (left) to 100 (right)."""
        try:
            item_id = self._require(self._mix_input(channel, mix).pan, "pan", mix, channel)
        except FocusriteMissingControl as err:
            return self._missing(err)
        return await self._session.set_value(self.device_id, item_id, pan_to_device(pan))

    # -------------------------------------------------------------------------
    # Outputs and monitoring
    # -------------------------------------------------------------------------

    async def set_output_volume(self, channel: int, level_db: float) -> bool:
        try:
            output = self._indexed(self._device().outputs, channel - 1, f"output {channel}")
            item_id = self._require_id(output.volume, f"volume for output {channel}")
        except FocusriteMissingControl as err:
            return self._missing(err)
        return await self._session.set_value(self.device_id, item_id, level_db)

    async def mute_output(self, index: int, state: SwitchState = "toggle") -> bool:
        """Mute an output; monitor outputs use the monitoring mute."""
        try:
            device = self._device()
            output = self._indexed(device.outputs, index, f"output {index}")
            item_id = device.monitoring.mute if output.monitor else output.mute
            item_id = self._require_id(item_id, f"mute for output {index}")
        except FocusriteMissingControl as err:
            return self._missing(err)
        return await self._switch(item_id, state)

    async def set_dim(self, state: SwitchState = "toggle") -> bool:
        try:
            item_id = self._require_id(self._device().monitoring.dim, "monitor dim")
        except FocusriteMissingControl as err:
            return self._missing(err)
        return await self._switch(item_id, state)

    # -------------------------------------------------------------------------
    # Hardware inputs
    # -------------------------------------------------------------------------

    async def set_air(self, channel: int, state: SwitchState = "toggle") -> bool:
        return await self._hardware_switch(channel, "air", state)

    async def set_phantom(self, channel: int, state: SwitchState = "toggle") -> bool:
        return await self._hardware_switch(channel, "phantom", state)

    async def set_pad(self, channel: int, state: SwitchState = "toggle") -> bool:
        return await self._hardware_switch(channel, "pad", state)

    async def set_stereo_link(self, channel: int, state: SwitchState = "toggle") -> bool:
        return await self._hardware_switch(channel, "stereo", state)

    async def set_mode(self, channel: int, mode: str) -> bool:
        """Select an input mode; modes the channel does not offer are rejected."""
        try:
            hw_input = self._hardware_input(channel)
            item_id = self._require_id(hw_input.mode, f"mode for channel {channel}")
        except FocusriteMissingControl as err:
            return self._missing(err)

        valid_modes = hw_input.mode_values or list(DEFAULT_MODE_VALUES)
        if mode not in valid_modes:
            _LOGGER.warning(
                "Mode %s not supported on channel %d. Valid: %s",
                mode,
                channel,
                ", ".join(valid_modes),
            )
            return False
        return await self._session.set_value(self.device_id, item_id, mode)

    async def cycle_mode(self, channel: int) -> bool:
        """Advance a channel to its next input mode, wrapping around."""
        try:
            hw_input = self._hardware_input(channel)
            item_id = self._require_id(hw_input.mode, f"mode for channel {channel}")
        except FocusriteMissingControl as err:
            return self._missing(err)

        valid_modes = hw_input.mode_values or list(DEFAULT_MODE_VALUES)
        current = self._session.get_item_value(self.device_id, item_id) or valid_modes[0]
        # An unrecognized value indexes as -1, so the cycle restarts at the first mode.
        index = valid_modes.index(current) if current in valid_modes else -1
        next_mode = valid_modes[(index + 1) % len(valid_modes)]
        return await self._session.set_value(self.device_id, item_id, next_mode)

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    async def _switch(self, item_id: str, state: SwitchState) -> bool:
        if state == "toggle":
            return await self._session.toggle_value(self.device_id, item_id)
        if state not in ("on", "off"):
            raise ValueError(f"Invalid switch state: {state!r}")
        return await self._session.set_value(self.device_id, item_id, state == "on")

    async def _hardware_switch(self, channel: int, control: str, state: SwitchState) -> bool:
        try:
            hw_input = self._hardware_input(channel)
            item_id = self._require_id(
                getattr(hw_input, control), f"{control} for channel {channel}"
            )
        except FocusriteMissingControl as err:
            return self._missing(err)
        return await self._switch(item_id, state)

    def _device(self) -> Device:
        device = self.device
        if device is None:
            raise FocusriteMissingControl(
                "device", f"Device {self.device_id} is not registered"
            )
        return device

    def _hardware_input(self, channel: int) -> HardwareInput:
        return self._indexed(
            self._device().hardware_inputs, channel - 1, f"input channel {channel}"
        )

    def _mix_input(self, channel: int, mix: int) -> MixInput:
        mix_obj = self._indexed(self._device().mixes, mix - 1, f"mix {mix}")
        return self._indexed(mix_obj.inputs, channel - 1, f"mix {mix} channel {channel}")

    @staticmethod
    def _indexed(values, index: int, label: str):
        if index < 0 or index >= len(values):
            raise FocusriteMissingControl(label, f"No {label}")
        return values[index]

    @staticmethod
    def _require(item_id: str | None, control: str, mix: int, channel: int) -> str:
        if not item_id:
            raise FocusriteMissingControl(
                control, f"No {control} control for mix {mix} channel {channel}"
            )
        return item_id

    @staticmethod
    def _require_id(item_id: str | None, label: str) -> str:
        if not item_id:
            raise FocusriteMissingControl(label, f"No {label} control")
        return item_id

    def _missing(self, err: FocusriteMissingControl) -> bool:
        _LOGGER.warning("[%s] %s", self.device_id, err)
        return False
