import asyncio
import typing

import pythonosc.udp_client
import pytest

import driftwave.osc
import driftwave.player


class FakeArrangement:

	"""Records transport calls made by the OSC server."""

	def __init__ (self) -> None:

		self.calls: typing.List[typing.Tuple[str, typing.Any]] = []

	def start (self) -> None:
		self.calls.append(("start", None))

	def stop (self) -> None:
		self.calls.append(("stop", None))

	def set_gain (self, gain: float) -> None:
		self.calls.append(("gain", gain))


async def _send (server: driftwave.osc.OscServer, address: str, value: typing.Any) -> None:

	"""Send one message to the server and give it time to arrive."""

	assert server.port is not None
	client = pythonosc.udp_client.SimpleUDPClient("127.0.0.1", server.port)
	client.send_message(address, value)
	await asyncio.sleep(0.1)


@pytest.mark.asyncio
async def test_osc_start_and_stop () -> None:

	"""Sending /start then /stop should drive the transport in order."""

	arrangement = FakeArrangement()
	server = driftwave.osc.OscServer(arrangement, receive_port=0, send_port=9)  # type: ignore[arg-type]
	await server.start()

	await _send(server, "/start", [])
	await _send(server, "/stop", [])

	assert arrangement.calls == [("start", None), ("stop", None)]

	await server.stop()


@pytest.mark.asyncio
async def test_osc_gain_handler () -> None:

	arrangement = FakeArrangement()
	server = driftwave.osc.OscServer(arrangement, receive_port=0, send_port=9)  # type: ignore[arg-type]
	await server.start()

	await _send(server, "/gain", 0.5)

	assert arrangement.calls == [("gain", 0.5)]

	await server.stop()


@pytest.mark.asyncio
async def test_osc_bad_gain_is_ignored () -> None:

	arrangement = FakeArrangement()
	server = driftwave.osc.OscServer(arrangement, receive_port=0, send_port=9)  # type: ignore[arg-type]
	await server.start()

	await _send(server, "/gain", "loud")
	await _send(server, "/gain", [])

	assert arrangement.calls == []

	await server.stop()


@pytest.mark.asyncio
async def test_osc_port_is_released () -> None:

	server = driftwave.osc.OscServer(FakeArrangement(), receive_port=0, send_port=9)  # type: ignore[arg-type]

	assert server.port is None

	await server.start()
	assert server.port

	await server.stop()
	assert server.port is None


def test_osc_start_with_a_broken_device () -> None:

	"""A device failure is logged and ``/playing 1`` is not reported."""

	class BrokenArrangement (FakeArrangement):

		def start (self) -> None:
			self.calls.append(("start", None))
			raise driftwave.player.AudioDeviceError("No such device")

	arrangement = BrokenArrangement()
	server = driftwave.osc.OscServer(arrangement, receive_port=0, send_port=9)  # type: ignore[arg-type]
	sent: typing.List[typing.Tuple[str, typing.Any]] = []
	server.send = lambda address, *args: sent.append((address, args))  # type: ignore[method-assign]

	server._handle_start("/start")

	assert arrangement.calls == [("start", None)]
	assert sent == []
