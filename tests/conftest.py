"""Pytest configuration and fixtures for focusrite_control tests."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from focusrite_control.errors import FocusriteClientError
from focusrite_control.registry import DeviceRegistry
from focusrite_control.router import route
from focusrite_control.transport.tcp_client import (
    FocusriteTcpMessage,
    FocusriteTcpMessageType,
)
from focusrite_control.xmldoc import Element

DEVICE_XML = """\
<device-arrival>
  <device id="1" name="Clarett 8Pre USB" model="Clarett 8Pre" serial="ABC123">
    <item id="3" name="firmware" value="1.2"/>
    <settings>
      <item id="4" value="48000" type="number" min="44100" max="192000"/>
    </settings>
    <inputs>
      <analogue id="10" name="Analogue 1">
        <mode id="11" value="Mic">
          <enum value="Mic"/>
          <enum value="Inst"/>
          <enum value="Line"/>
          <enum value="Mic"/>
        </mode>
        <air id="12" value="false"/>
        <phantom id="13" value="false"/>
        <pad id="14" value="false"/>
        <hpf id="99" value="false"/>
        <highpass id="15" value="false"/>
        <polarity id="16" value="false"/>
        <gain id="17" value="0"/>
        <stereolink id="18" value="false"/>
      </analogue>
      <analogue id="20" name="Analogue 2">
        <mode id="21" value="Line"/>
        <air id="22" value="true"/>
      </analogue>
      <analogue id="25" name="Analogue 1-2"/>
      <analogue id="26" name="Monitor L"/>
      <analogue id="27" name=" "/>
      <input id="30"><source id="31" value="10"/></input>
      <input id="32"><source id="33" value="40"/></input>
    </inputs>
    <playback id="40" name="Playback 1"/>
    <spdif id="41" name="S/PDIF 1"/>
    <mixer>
      <mix id="50" name="Mix A">
        <meter id="51"/>
        <inputs>
          <input id="52">
            <gain id="53" value="0"/>
            <pan id="54" value="32768"/>
            <mute id="55" value="false"/>
            <solo id="56" value="false"/>
          </input>
          <input id="57">
            <gain id="58" value="-6"/>
            <mute id="59" value="true"/>
          </input>
          <input id="60"><pan id="61"/></input>
        </inputs>
      </mix>
      <mix id="62" name=""/>
    </mixer>
    <outputs>
      <analogue id="70" name="Line 1">
        <gain id="71" value="-10"/>
        <mute id="72" value="false"/>
      </analogue>
      <analogue id="73" name="Monitor" monitor="true">
        <gain id="74" value="-20"/>
      </analogue>
      <analogue id="75" name="Line 3"/>
    </outputs>
    <monitoring>
      <hardware-controls mode="shared"><dim id="80"/></hardware-controls>
      <hardware-controls mode="exclusive">
        <gain id="81" value="-20"/>
        <dim id="82" value="false"/>
        <mute id="83" value="false"/>
      </hardware-controls>
    </monitoring>
  </device>
</device-arrival>
"""


@pytest.fixture
def device_xml() -> str:
    """A single-device arrival payload covering every parsed section."""
    return DEVICE_XML


@pytest.fixture
def device_root() -> Element:
    """Parsed arrival payload."""
    root = route(DEVICE_XML).root
    assert root is not None
    return root


@pytest.fixture
def registry(device_root: Element) -> DeviceRegistry:
    """Registry with the sample device registered."""
    reg = DeviceRegistry()
    reg.apply_arrival(device_root)
    return reg


class FakeTcpClient:
    """Stand-in for FocusriteTcpClient driven by a message queue."""

    def __init__(self) -> None:
        self.connect = AsyncMock()
        self.close = AsyncMock()
        self.send_payload = AsyncMock()
        self._queue: asyncio.Queue[FocusriteTcpMessage] = asyncio.Queue()

    @property
    def sent(self) -> list[str]:
        return [call.args[0] for call in self.send_payload.call_args_list]

    def push_text(self, payload: str) -> None:
        self._queue.put_nowait(
            FocusriteTcpMessage(FocusriteTcpMessageType.TEXT, payload)
        )

    def push_error(self, error: FocusriteClientError) -> None:
        self._queue.put_nowait(
            FocusriteTcpMessage(FocusriteTcpMessageType.ERROR, error=error)
        )

    def push_closed(self) -> None:
        self._queue.put_nowait(FocusriteTcpMessage(FocusriteTcpMessageType.CLOSED))

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        while True:
            message = await self._queue.get()
            yield message
            if message.type is FocusriteTcpMessageType.CLOSED:
                return


@pytest.fixture
def fake_client_factory():
    """Return a factory producing fresh fake clients, recording each one."""
    created: list[FakeTcpClient] = []

    def factory() -> FakeTcpClient:
        client = FakeTcpClient()
        created.append(client)
        return client

    factory.created = created  # type: ignore[attr-defined]
    return factory


async def settle(rounds: int = 20) -> None:
    """Let pending tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture(name="settle")
def settle_fixture():
    """Provide :func:`settle` to tests."""
    return settle
