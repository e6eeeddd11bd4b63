"""Playback state around a built signal graph.

A :class:`Session` is the single owner of a graph and its clock.  Whatever
thread calls :meth:`Session.render_block` (normally the audio callback) is the
driving loop; every other thread talks to it through :meth:`start`,
:meth:`stop` and :meth:`set_gain`, which only post commands.  Commands are
applied at the start of the next block, so the play flag and gain have exactly
one writer and need no lock.

Stopping never rebuilds or resets anything: while stopped the clock does not
advance and the graph is not sampled, so sequencer cursors, stored pitches and
oscillator phases pick up exactly where they left off.
"""

import logging
import queue
import typing

import numpy

import driftwave.signal


logger = logging.getLogger(__name__)

COMMAND_START = "start"
COMMAND_STOP = "stop"
COMMAND_GAIN = "gain"


class Session:

	"""Play/pause state and block rendering for one graph."""

	def __init__ (self, signal: driftwave.signal.Signal, sample_rate: int, gain: float = 1.0) -> None:

		"""
		Parameters:
			signal: The fully built output signal.
			sample_rate: Samples per second.
			gain: Master gain applied after the graph.
		"""

		self.signal = signal
		self.ctx = driftwave.signal.Context(sample_rate)
		self.playing = False
		self.gain = gain
		self._commands: "queue.SimpleQueue[typing.Tuple[str, typing.Any]]" = queue.SimpleQueue()

	@property
	def sample_rate (self) -> int:
		return self.ctx.sample_rate

	@property
	def tick (self) -> int:
		return self.ctx.tick

	@property
	def seconds (self) -> float:
		return self.ctx.seconds

	def start (self) -> None:

		"""Request playback from the next block on."""

		self._commands.put((COMMAND_START, None))

	def stop (self) -> None:

		"""Request silence from the next block on, keeping all state."""

		self._commands.put((COMMAND_STOP, None))

	def set_gain (self, gain: float) -> None:

		"""Request a new master gain from the next block on."""

		self._commands.put((COMMAND_GAIN, float(gain)))

	def _apply_commands (self) -> None:

		while True:

			try:
				command, value = self._commands.get_nowait()
			except queue.Empty:
				return

			if command == COMMAND_START:
				if not self.playing:
					logger.info(f"Playback started at {self.seconds:.2f}s")
				self.playing = True

			elif command == COMMAND_STOP:
				if self.playing:
					logger.info(f"Playback stopped at {self.seconds:.2f}s")
				self.playing = False

			elif command == COMMAND_GAIN:
				self.gain = max(0.0, value)
				logger.info(f"Gain set to {self.gain:.2f}")

	def render_block (self, frames: int) -> numpy.ndarray:

		"""
		Produce the next ``frames`` samples as float32 in -1..1.

		Pending commands are applied first.  When stopped the block is silent
		and the clock stays where it is.
		"""

		self._apply_commands()

		block = numpy.zeros(frames, dtype=numpy.float32)

		if not self.playing:
			return block

		signal = self.signal
		ctx = self.ctx

		for i in range(frames):
			block[i] = signal.sample(ctx)
			ctx.advance()

		block *= self.gain
		numpy.nan_to_num(block, copy=False, nan=0.0, posinf=0.0, neginf=0.0)
		numpy.clip(block, -1.0, 1.0, out=block)
		return block
