"""OSC transport control.

Enable with ``arrangement.osc()`` before ``arrangement.play()``.  The server
listens on a UDP port (default 9000) and reports state to a target host/port
(default 127.0.0.1:9001).

Receive Handlers
────────────────
- ``/start``: Begin or resume playback
- ``/stop``: Mute playback, keeping all sequencer state
- ``/gain <float>``: Set the master gain

Send Events
───────────
- ``/playing <int>``: 1 or 0 after each start or stop
"""

import asyncio
import logging
import typing

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

import driftwave.player

if typing.TYPE_CHECKING:
	from driftwave.arrangement import Arrangement


logger = logging.getLogger(__name__)


class OscServer:

	"""Async OSC server plus a client for state replies."""

	def __init__ (
		self,
		arrangement: "Arrangement",
		receive_port: int = 9000,
		send_port: int = 9001,
		send_host: str = "127.0.0.1"
	) -> None:

		self._arrangement = arrangement
		self._receive_port = receive_port
		self._send_port = send_port
		self._send_host = send_host

		self._transport: typing.Optional[asyncio.BaseTransport] = None
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = None
		self._dispatcher = pythonosc.dispatcher.Dispatcher()

		self._dispatcher.map("/start", self._handle_start)
		self._dispatcher.map("/stop", self._handle_stop)
		self._dispatcher.map("/gain", self._handle_gain)

	@property
	def port (self) -> typing.Optional[int]:

		"""The bound receive port, once started."""

		if self._transport is None:
			return None

		return self._transport.get_extra_info("sockname")[1]

	async def start (self) -> None:

		"""Start listening."""

		self._client = pythonosc.udp_client.SimpleUDPClient(self._send_host, self._send_port)

		server = pythonosc.osc_server.AsyncIOOSCUDPServer(
			("0.0.0.0", self._receive_port),
			self._dispatcher,
			asyncio.get_running_loop()  # type: ignore[arg-type]
		)

		transport, _ = await server.create_serve_endpoint()
		self._transport = transport

		logger.info(f"OSC listening on :{self.port}, sending to {self._send_host}:{self._send_port}")

	async def stop (self) -> None:

		if self._transport:
			self._transport.close()
			self._transport = None
			logger.info("OSC server stopped")

	def send (self, address: str, *args: typing.Any) -> None:

		"""Send an OSC message; failures are logged, not raised."""

		if self._client:
			try:
				self._client.send_message(address, args)
			except OSError as e:
				logger.warning(f"OSC send error: {e}")

	# Handlers

	def _handle_start (self, address: str, *args: typing.Any) -> None:
		try:
			self._arrangement.start()
		except driftwave.player.AudioDeviceError as e:
			logger.error(f"OSC start failed: {e}")
			return
		self.send("/playing", 1)

	def _handle_stop (self, address: str, *args: typing.Any) -> None:
		self._arrangement.stop()
		self.send("/playing", 0)

	def _handle_gain (self, address: str, *args: typing.Any) -> None:
		if not args:
			return
		try:
			gain = float(args[0])
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC gain argument: {args[0]}")
			return
		self._arrangement.set_gain(gain)
