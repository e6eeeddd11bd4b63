import asyncio
import json
import typing
import urllib.request

import pytest
import websockets.asyncio.client

import driftwave.web_ui


class FakeTransport:

	def __init__ (self) -> None:

		self.playing = False
		self.calls: typing.List[str] = []

	def start (self) -> None:
		self.calls.append("start")
		self.playing = True

	def stop (self) -> None:
		self.calls.append("stop")
		self.playing = False

	def state (self) -> typing.Dict[str, typing.Any]:
		return {"playing": self.playing, "seconds": 1.5}


class TestHandleMessage:

	def test_start_and_stop (self) -> None:

		transport = FakeTransport()
		ui = driftwave.web_ui.WebUI(transport)

		assert ui.handle_message('{"command": "start"}') == "start"
		assert ui.handle_message(b'{"command": "stop"}') == "stop"
		assert transport.calls == ["start", "stop"]

	@pytest.mark.parametrize("message", [
		"not json",
		"[1, 2]",
		'{"command": "rewind"}',
		'{"action": "start"}',
	])
	def test_ignored_messages (self, message: str) -> None:

		transport = FakeTransport()
		ui = driftwave.web_ui.WebUI(transport)

		assert ui.handle_message(message) is None
		assert transport.calls == []


@pytest.mark.asyncio
async def test_browser_round_trip () -> None:

	"""A connected page can press Start and receives state broadcasts."""

	transport = FakeTransport()
	ui = driftwave.web_ui.WebUI(transport, http_port=0, ws_port=0)
	await ui.start()

	try:
		async with websockets.asyncio.client.connect(f"ws://127.0.0.1:{ui.ws_port}") as ws:
			await ws.send(json.dumps({"command": "start"}))

			state = json.loads(await asyncio.wait_for(ws.recv(), timeout=2.0))
			while not state["playing"]:
				state = json.loads(await asyncio.wait_for(ws.recv(), timeout=2.0))

			assert state == {"playing": True, "seconds": 1.5}
			assert transport.calls == ["start"]

	finally:
		await ui.stop()


@pytest.mark.asyncio
async def test_page_is_served_with_the_socket_port () -> None:

	ui = driftwave.web_ui.WebUI(FakeTransport(), http_port=0, ws_port=0)
	await ui.start()

	def fetch () -> typing.Tuple[str, str]:
		with urllib.request.urlopen(f"http://127.0.0.1:{ui.http_port}/") as response:
			return response.read().decode(), response.headers.get("Set-Cookie", "")

	try:
		body, cookie = await asyncio.get_running_loop().run_in_executor(None, fetch)

		assert "Start" in body
		assert f"ws_port={ui.ws_port}" in cookie

	finally:
		await ui.stop()
