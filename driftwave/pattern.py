"""Bitmask drum patterns: one trigger in, one trigger per instrument out.

A pattern table is a list of integer masks, one per step.  Bit ``c`` of a mask
says whether channel ``c`` fires on that step.  :class:`PatternTriggers`
walks the table once per input firing, so its outputs are phase-locked and
repeat every ``len(table)`` input firings::

	table = driftwave.pattern.table_from_rows([
		"x.x.x.x.",   # channel 0
		"..x...x.",   # channel 1
		"x...x...",   # channel 2
	])
	cymbal, snare, kick = driftwave.pattern.PatternTriggers(clock, table, channels=3).triggers
"""

import logging
import typing

import driftwave.signal


logger = logging.getLogger(__name__)

HIT_CHARACTERS = "xX"


class _PatternCursor (driftwave.signal.Signal):

	"""Emits the current step's mask on each firing (0 otherwise) and advances."""

	def __init__ (self, trigger: driftwave.signal.Signal, table: typing.Sequence[int]) -> None:

		super().__init__()
		self._trigger = trigger
		self._table = list(table)
		self.cursor = 0

	def _compute (self, ctx: driftwave.signal.Context) -> int:

		if not self._trigger.sample(ctx):
			return 0

		mask = self._table[self.cursor]
		self.cursor = (self.cursor + 1) % len(self._table)
		return mask


class PatternTriggers:

	"""
	Demultiplex one trigger into per-channel triggers from a bitmask table.

	Parameters:
		trigger: The input trigger.
		table: One mask per step; must not be empty.
		width: Bit width of the masks.  Every mask must fit in ``width`` bits.
		channels: Number of output triggers (default ``width``).  Must be
			between 1 and ``width``.

	All validation happens here, so a bad table fails when the graph is built
	rather than during playback.
	"""

	def __init__ (
		self,
		trigger: driftwave.signal.Signal,
		table: typing.Sequence[int],
		width: int = 8,
		channels: typing.Optional[int] = None
	) -> None:

		if width < 1:
			raise ValueError(f"Pattern width must be at least 1, got {width}")

		if not table:
			raise ValueError("Pattern table cannot be empty")

		if channels is None:
			channels = width

		if not 1 <= channels <= width:
			raise ValueError(f"Channel count ({channels}) must be between 1 and the pattern width ({width})")

		limit = 1 << width

		for step, mask in enumerate(table):
			if not 0 <= mask < limit:
				raise ValueError(f"Mask {mask:#x} at step {step} does not fit in {width} bits")

		self.width = width
		self.channels = channels
		self.table: typing.List[int] = list(table)
		self._cursor = _PatternCursor(trigger, self.table)

		self.triggers: typing.List[driftwave.signal.Signal] = [
			self._cursor.map(_bit_test(c)) for c in range(channels)
		]

		logger.debug(f"Pattern demultiplexer: {len(self.table)} steps, {channels} channels")

	@property
	def cursor (self) -> int:

		"""Index of the step that the next input firing will play."""

		return self._cursor.cursor

	def channel (self, index: int) -> driftwave.signal.Signal:

		"""Return the trigger for one channel."""

		if not 0 <= index < self.channels:
			raise IndexError(f"Channel {index} out of range (0-{self.channels - 1})")

		return self.triggers[index]


def _bit_test (channel: int) -> typing.Callable[[int], bool]:

	bit = 1 << channel
	return lambda mask: bool(mask & bit)


def bitwise_pattern_triggers (trigger: driftwave.signal.Signal, table: typing.Sequence[int], width: int = 8) -> PatternTriggers:

	"""Build a demultiplexer with one output per bit of ``width``."""

	return PatternTriggers(trigger, table, width=width)


def table_from_rows (rows: typing.Sequence[str]) -> typing.List[int]:

	"""
	Build a mask table from one step string per channel.

	``x`` or ``X`` marks a hit; any other character is a rest.  Row ``c``
	becomes bit ``c``.  All rows must have the same number of steps.

	Example:
		```python
		table_from_rows(["xx", ".x"])  # -> [0b01, 0b11]
		```
	"""

	if not rows:
		raise ValueError("At least one row is required")

	steps = len(rows[0])

	if steps == 0:
		raise ValueError("Rows cannot be empty")

	for row in rows:
		if len(row) != steps:
			raise ValueError(f"All rows must have {steps} steps, got {len(row)} in {row!r}")

	table = [0] * steps

	for channel, row in enumerate(rows):
		for step, char in enumerate(row):
			if char in HIT_CHARACTERS:
				table[step] |= 1 << channel

	return table


def euclidean_steps (steps: int, pulses: int) -> typing.List[int]:

	"""
	Spread ``pulses`` hits as evenly as possible over ``steps`` (Bjorklund).

	The result always starts on a hit when ``pulses > 0``.
	"""

	if steps < 1:
		raise ValueError(f"Steps must be positive, got {steps}")

	if not 0 <= pulses <= steps:
		raise ValueError(f"Pulses ({pulses}) must be between 0 and steps ({steps})")

	if pulses == 0:
		return [0] * steps

	groups: typing.List[typing.List[int]] = [[1] for _ in range(pulses)]
	remainders: typing.List[typing.List[int]] = [[0] for _ in range(steps - pulses)]

	while len(remainders) > 1:
		count = min(len(groups), len(remainders))
		paired = [groups[i] + remainders[i] for i in range(count)]

		if len(groups) > count:
			remainders = groups[count:]
		else:
			remainders = remainders[count:]

		groups = paired

	return [bit for group in groups + remainders for bit in group]


def euclidean_table (steps: int, pulses_per_channel: typing.Sequence[int]) -> typing.List[int]:

	"""Build a mask table with one Euclidean rhythm per channel."""

	table = [0] * steps

	for channel, pulses in enumerate(pulses_per_channel):
		for step, hit in enumerate(euclidean_steps(steps, pulses)):
			if hit:
				table[step] |= 1 << channel

	return table
