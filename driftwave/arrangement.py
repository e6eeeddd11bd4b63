import asyncio
import logging
import random
import signal
import threading
import typing

import driftwave.config
import driftwave.constants.drum_patterns
import driftwave.dsp
import driftwave.osc
import driftwave.pattern
import driftwave.player
import driftwave.quantizer
import driftwave.replace_loop
import driftwave.scales
import driftwave.session
import driftwave.signal
import driftwave.triggers
import driftwave.voices
import driftwave.web_ui


logger = logging.getLogger(__name__)


class Arrangement:

	"""
	The top-level controller for a generative piece.

	An `Arrangement` wires one master clock into melodic replace-loop voices
	and a pattern-driven drum kit, adds slow modulation, and mixes everything
	into a single signal.  It also owns the front ends that play that signal:
	the audio device, the browser Start/Stop page, OSC, and offline rendering.

	Typical workflow:
	1. Create an `Arrangement`, optionally from a loaded config.
	2. Enable front ends with `web_ui()` and/or `osc()` (optional).
	3. Call `play()`, or `render()` to write a file instead.

	The graph is built once, on first use, and is never rebuilt; start and
	stop only mute and unmute it.
	"""

	def __init__ (self, config: typing.Optional[driftwave.config.Config] = None, seed: typing.Optional[int] = None) -> None:

		"""
		Parameters:
			config: Settings for every part of the piece (defaults if omitted).
			seed: Optional seed for the sequencing decisions (loop replacement,
				anchor draws, palette pitches, skipped triggers).  Overrides
				``config.seed``.  Without one, every run is different.

		Example:
			```python
			config = driftwave.config.load_config("driftwave.yaml")
			arrangement = driftwave.Arrangement(config)
			arrangement.web_ui()
			arrangement.play(autostart=False)
			```
		"""

		self.config = config if config is not None else driftwave.config.Config()
		self._seed = seed if seed is not None else self.config.seed
		self._master_rng: typing.Optional[random.Random] = random.Random(self._seed) if self._seed is not None else None

		self.loops: typing.List[driftwave.replace_loop.ReplaceLoop] = []
		self.drum_triggers: typing.Optional[driftwave.pattern.PatternTriggers] = None

		self._signal: typing.Optional[driftwave.signal.Signal] = None
		self._session: typing.Optional[driftwave.session.Session] = None
		self._player: typing.Optional[driftwave.player.AudioPlayer] = None
		self._web_ui: typing.Optional[driftwave.web_ui.WebUI] = None
		self._osc_server: typing.Optional[driftwave.osc.OscServer] = None

		# The web UI starts playback from a worker thread, so lazy setup is guarded.
		self._lock = threading.RLock()

	@classmethod
	def from_config (cls, config: typing.Union[driftwave.config.Config, str], seed: typing.Optional[int] = None) -> "Arrangement":

		"""Create an arrangement from a config object or a YAML file path."""

		if isinstance(config, str):
			config = driftwave.config.load_config(config)

		return cls(config, seed=seed)

	def _rng (self) -> random.Random:

		"""An independent random source for one component."""

		if self._master_rng is not None:
			return random.Random(self._master_rng.randint(0, 2 ** 63))

		return random.Random()

	# Graph assembly

	def build (self) -> driftwave.signal.Signal:

		"""Build the output signal on first call; later calls return the same graph."""

		with self._lock:
			if self._signal is None:
				self._signal = self._build()

		return self._signal

	def _build (self) -> driftwave.signal.Signal:

		clock = driftwave.triggers.periodic_trigger(self.config.clock.rate_hz)
		parts: typing.List[driftwave.signal.Signal] = []

		if self.config.melody.enabled:
			melody_trigger = driftwave.triggers.divide(clock, self.config.melody.division)
			parts.append(self.melody_signal(melody_trigger) * self.config.melody.level)

		if self.config.drums.enabled:
			drum_trigger = driftwave.triggers.divide(clock, self.config.drums.division)
			parts.append(self.drum_signal(drum_trigger))

		if not parts:
			raise ValueError("Nothing to play: melody and drums are both disabled")

		out = driftwave.signal.mix(parts)

		logger.info(
			f"Graph built: clock {self.config.clock.rate_hz} Hz, "
			f"{len(self.loops)} melodic voice(s), "
			f"{'drums' if self.drum_triggers else 'no drums'}"
		)

		return out

	def melody_signal (self, trigger: driftwave.signal.Signal) -> driftwave.signal.Signal:

		"""Replace-loop voices on ``trigger``, with shared modulation and echo."""

		melody = self.config.melody
		modulation = self.config.modulation

		if melody.voices < 1:
			raise ValueError(f"Melody needs at least one voice, got {melody.voices}")

		if melody.skip_probability > 0:
			trigger = driftwave.triggers.random_skip(trigger, melody.skip_probability, self._rng())

		scale = driftwave.scales.scale_base_frequencies(melody.key, melody.mode)
		anchor = driftwave.scales.note_frequency(melody.anchor_note, melody.anchor_octave)

		voices = []

		for voice_trigger in driftwave.triggers.split(trigger, melody.voices):

			palette = driftwave.quantizer.random_note(scale, melody.palette_base_hz, melody.palette_range_hz, self._rng())

			loop = driftwave.replace_loop.ReplaceLoop(
				trigger = voice_trigger,
				anchor = anchor,
				palette = palette,
				length = melody.length,
				replace_probability = melody.replace_probability,
				anchor_probability = melody.anchor_probability,
				rng = self._rng()
			)

			self.loops.append(loop)
			gate = driftwave.triggers.to_gate(voice_trigger, melody.gate_s)
			voices.append(driftwave.voices.synth_voice(loop, gate))

		out = driftwave.signal.mix(voices) * (1.0 / len(voices))

		# One slow triangle swells the compressor drive and speeds up the filter wobble.
		modulate = 1.0 - driftwave.dsp.oscillator_s("triangle", modulation.period_s).signed_to_01()
		lfo = driftwave.dsp.oscillator("sine", modulate * modulation.lfo_rate_hz)

		out = (
			out.filter(driftwave.dsp.compress(threshold=2.0, ratio=0.1, scale=1.0 + modulate * modulation.compress_depth))
			.filter(driftwave.dsp.low_pass_moog_ladder(modulation.cutoff_hz + lfo * modulation.cutoff_depth_hz, resonance=1.0))
		)

		if melody.echo_s > 0:
			out = out.filter(driftwave.dsp.echo(melody.echo_s, melody.echo_scale))

		return out

	def drum_signal (self, trigger: driftwave.signal.Signal) -> driftwave.signal.Signal:

		"""One instrument per pattern channel, summed, with echo."""

		drums = self.config.drums

		if not drums.instruments:
			raise ValueError("Drums need at least one instrument")

		table = driftwave.constants.drum_patterns.get_pattern(drums.pattern)
		builders = [driftwave.voices.instrument(name) for name in drums.instruments]

		self.drum_triggers = driftwave.pattern.PatternTriggers(trigger, table, width=8, channels=len(builders))

		out = driftwave.signal.mix([
			builder(channel_trigger)
			for builder, channel_trigger in zip(builders, self.drum_triggers.triggers)
		])

		if drums.echo_s > 0:
			out = out.filter(driftwave.dsp.echo(drums.echo_s, drums.echo_scale))

		return out

	# Transport

	@property
	def session (self) -> driftwave.session.Session:

		"""The playback session, created with the graph on first access."""

		with self._lock:
			if self._session is None:
				self._session = driftwave.session.Session(self.build(), self.config.audio.sample_rate, gain=self.config.mix.gain)

		return self._session

	@property
	def player (self) -> driftwave.player.AudioPlayer:

		with self._lock:
			if self._player is None:
				audio = self.config.audio
				self._player = driftwave.player.AudioPlayer(
					self.session,
					block_size = audio.block_size,
					device = audio.device,
					latency = audio.latency
				)

		return self._player

	def start (self) -> None:

		"""Begin playback, or resume it exactly where it stopped."""

		self.player.start()

	def stop (self) -> None:

		"""Mute playback; the device stays open and no state is reset."""

		self.player.stop()

	def set_gain (self, gain: float) -> None:
		self.session.set_gain(gain)

	def state (self) -> typing.Dict[str, typing.Any]:

		"""A JSON-friendly snapshot for status displays."""

		session = self.session

		return {
			"playing": session.playing,
			"tick": session.tick,
			"seconds": session.seconds,
			"gain": session.gain,
			"loops": [{"cursor": loop.cursor, "slots": loop.slots} for loop in self.loops],
			"drum_step": self.drum_triggers.cursor if self.drum_triggers else None,
		}

	# Front ends

	def web_ui (self, http_port: typing.Optional[int] = None, ws_port: typing.Optional[int] = None) -> None:

		"""Serve the browser Start/Stop page while playing."""

		self._web_ui = driftwave.web_ui.WebUI(
			self,
			http_port = http_port if http_port is not None else self.config.web.http_port,
			ws_port = ws_port if ws_port is not None else self.config.web.ws_port
		)

	def osc (self, receive_port: typing.Optional[int] = None, send_port: typing.Optional[int] = None, send_host: typing.Optional[str] = None) -> None:

		"""Accept ``/start``, ``/stop`` and ``/gain`` over OSC while playing."""

		osc = self.config.osc

		self._osc_server = driftwave.osc.OscServer(
			self,
			receive_port = receive_port if receive_port is not None else osc.receive_port,
			send_port = send_port if send_port is not None else osc.send_port,
			send_host = send_host if send_host is not None else osc.send_host
		)

	def play (self, autostart: bool = True) -> None:

		"""
		Run until interrupted (Ctrl+C).

		Parameters:
			autostart: Start sound immediately.  Pass ``False`` to wait for a
				Start from the web page or OSC.

		Raises:
			driftwave.player.AudioDeviceError: If the audio device cannot be
				opened, or fails during playback.
		"""

		try:
			asyncio.run(self._run(autostart))

		except KeyboardInterrupt:
			pass

	def render (self, seconds: float, filename: str = "render.wav") -> int:

		"""Render to a sound file as fast as possible; returns frames written."""

		return driftwave.player.render_to_file(self.session, filename, seconds, self.config.audio.block_size)

	async def _run (self, autostart: bool) -> None:

		self.build()

		stop_event = asyncio.Event()
		loop = asyncio.get_running_loop()

		for sig in (signal.SIGINT, signal.SIGTERM):
			loop.add_signal_handler(sig, stop_event.set)

		try:
			if self._web_ui is not None:
				await self._web_ui.start()

			if self._osc_server is not None:
				await self._osc_server.start()

			if autostart:
				self.start()
				logger.info("Playing. Press Ctrl+C to stop.")
			else:
				logger.info("Waiting for Start. Press Ctrl+C to quit.")

			while not stop_event.is_set():
				self.player.raise_if_failed()

				try:
					await asyncio.wait_for(stop_event.wait(), timeout=0.1)
				except asyncio.TimeoutError:
					pass

		finally:
			if self._web_ui is not None:
				await self._web_ui.stop()

			if self._osc_server is not None:
				await self._osc_server.stop()

			self.player.close()
