"""The replace-loop: a melodic sequencer with controlled memory.

A replace-loop keeps a fixed-length ring of pitches.  Each trigger plays the
slot under the cursor and moves on, so the line repeats every ``length``
triggers, except that:

- with ``replace_probability`` the slot is overwritten with a fresh palette
  pitch just before it plays, so the loop slowly mutates;
- each time the cursor comes round to position 0 a coin with
  ``anchor_probability`` decides whether this pass starts on the anchor
  ("home") pitch instead of the stored one;
- empty slots are filled from the palette the first time they are reached;
- the very first trigger always plays the anchor.

Between triggers the output holds the last pitch played (sample-and-hold), and
before the first trigger it is the anchor.

Example:
	```python
	freq = driftwave.replace_loop.ReplaceLoop(
		trigger = clock,
		anchor = driftwave.scales.note_frequency("A", 1),
		palette = driftwave.quantizer.random_note(scale, 50.0, 200.0),
		length = 8,
		replace_probability = 0.1,
		anchor_probability = 0.5,
	)
	```
"""

import logging
import random
import typing

import driftwave.signal
import driftwave.triggers


logger = logging.getLogger(__name__)


class ReplaceLoop (driftwave.signal.Signal):

	"""Stateful, partially random melodic loop.  See the module docstring."""

	def __init__ (
		self,
		trigger: driftwave.signal.Signal,
		anchor: driftwave.signal.SignalLike,
		palette: driftwave.signal.SignalLike,
		length: int,
		replace_probability: driftwave.signal.SignalLike = 0.0,
		anchor_probability: driftwave.signal.SignalLike = 0.0,
		rng: typing.Optional[typing.Any] = None
	) -> None:

		"""Build a loop.

		Parameters:
			trigger: Advances the loop on every firing.
			anchor: The home pitch in Hz (signal or number).
			palette: Source of fresh pitches in Hz, read only when a slot is
				filled or replaced.
			length: Number of slots; at least 1.
			replace_probability: Chance per trigger (0-1) that the slot about
				to play is redrawn first.  Out-of-range values are clamped.
			anchor_probability: Chance per pass (0-1) that position 0 plays
				the anchor.  Out-of-range values are clamped.
			rng: Random source with a ``random()`` method.  Defaults to an
				unseeded ``random.Random``.
		"""

		if not isinstance(length, int) or isinstance(length, bool) or length < 1:
			raise ValueError(f"Loop length must be a positive integer, got {length!r}")

		super().__init__()

		self._trigger = trigger
		self._anchor = driftwave.signal.to_signal(anchor)
		self._palette = driftwave.signal.to_signal(palette)
		self._replace_probability = driftwave.signal.to_signal(replace_probability)
		self._anchor_probability = driftwave.signal.to_signal(anchor_probability)
		self._rng = rng if rng is not None else random.Random()

		self.length = length
		self._slots: typing.List[typing.Optional[float]] = [None] * length
		self._cursor = 0
		self._anchor_active = False
		self._first_note = True
		self._triggers_seen = 0
		self._held: typing.Optional[float] = None

		logger.debug(f"Replace-loop: {length} slots")

	@property
	def cursor (self) -> int:

		"""Slot the next trigger will play."""

		return self._cursor

	@property
	def slots (self) -> typing.List[typing.Optional[float]]:

		"""Copy of the stored pitches (``None`` for slots not yet filled)."""

		return list(self._slots)

	@property
	def anchor_active (self) -> bool:

		"""Whether this pass through the loop plays the anchor at position 0."""

		return self._anchor_active

	@property
	def triggers_seen (self) -> int:
		return self._triggers_seen

	def _compute (self, ctx: driftwave.signal.Context) -> float:

		# Parameters are read every tick so stateful sources behind them keep time.
		anchor = self._anchor.sample(ctx)
		replace_probability = driftwave.triggers.clamp_01(self._replace_probability.sample(ctx))
		anchor_probability = driftwave.triggers.clamp_01(self._anchor_probability.sample(ctx))

		if self._trigger.sample(ctx):
			self._held = self._step(ctx, anchor, replace_probability, anchor_probability)

		elif self._held is None:
			self._held = anchor

		return self._held

	def _step (self, ctx: driftwave.signal.Context, anchor: float, replace_probability: float, anchor_probability: float) -> float:

		"""Run the per-trigger protocol once and return the pitch to play."""

		index = self._cursor
		self._triggers_seen += 1

		if self._rng.random() < replace_probability:
			self._slots[index] = self._palette.sample(ctx)

		if index == 0:
			self._anchor_active = self._rng.random() < anchor_probability

		if self._first_note:
			# The loop has no content of its own yet; play home once.
			self._first_note = False
			freq = anchor

		elif index == 0 and self._anchor_active:
			freq = anchor

		else:
			stored = self._slots[index]

			if stored is None:
				stored = self._palette.sample(ctx)
				self._slots[index] = stored

			freq = stored

		self._cursor = (index + 1) % self.length
		return freq
