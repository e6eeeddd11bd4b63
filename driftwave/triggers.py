"""Clock triggers, dividers and gates.

A trigger is a boolean signal that is ``True`` on exactly the samples where an
event fires.  A gate is a boolean signal that stays ``True`` for a while after
a trigger so that envelopes can sustain.
"""

import random
import typing

import driftwave.pattern
import driftwave.signal


class PeriodicTrigger (driftwave.signal.Signal):

	"""Fires on tick 0 and then once every ``round(sample_rate / rate_hz)`` ticks."""

	def __init__ (self, rate_hz: float) -> None:

		if rate_hz <= 0:
			raise ValueError(f"Trigger rate must be positive, got {rate_hz}")

		super().__init__()
		self.rate_hz = rate_hz

	def period (self, sample_rate: int) -> int:

		"""Number of ticks between firings at the given sample rate."""

		return max(1, round(sample_rate / self.rate_hz))

	def _compute (self, ctx: driftwave.signal.Context) -> bool:
		return ctx.tick % self.period(ctx.sample_rate) == 0


class Divider (driftwave.signal.Signal):

	"""Fires on every ``n``-th firing of its input, starting with the ``n``-th."""

	def __init__ (self, trigger: driftwave.signal.Signal, n: int) -> None:

		super().__init__()
		self._trigger = trigger
		self.n = n
		self._count = 0

	def _compute (self, ctx: driftwave.signal.Context) -> bool:

		if not self._trigger.sample(ctx):
			return False

		self._count += 1

		if self._count == self.n:
			self._count = 0
			return True

		return False


class RandomSkip (driftwave.signal.Signal):

	"""Drops each input firing with a (clamped) probability."""

	def __init__ (self, trigger: driftwave.signal.Signal, probability: driftwave.signal.SignalLike, rng: typing.Any) -> None:

		super().__init__()
		self._trigger = trigger
		self._probability = driftwave.signal.to_signal(probability)
		self._rng = rng

	def _compute (self, ctx: driftwave.signal.Context) -> bool:

		probability = clamp_01(self._probability.sample(ctx))

		if not self._trigger.sample(ctx):
			return False

		return not self._rng.random() < probability


class HeldGate (driftwave.signal.Signal):

	"""High for ``duration_s`` after each firing, retriggering while held."""

	def __init__ (self, trigger: driftwave.signal.Signal, duration_s: float) -> None:

		super().__init__()
		self._trigger = trigger
		self.duration_s = duration_s
		self._remaining = 0

	def _compute (self, ctx: driftwave.signal.Context) -> bool:

		if self._trigger.sample(ctx):
			self._remaining = max(1, round(self.duration_s * ctx.sample_rate))

		if self._remaining > 0:
			self._remaining -= 1
			return True

		return False


def clamp_01 (value: float) -> float:
	return max(0.0, min(1.0, value))


def periodic_trigger (rate_hz: float) -> PeriodicTrigger:
	return PeriodicTrigger(rate_hz)


def divide (trigger: driftwave.signal.Signal, n: int) -> driftwave.signal.Signal:

	"""
	Derive a slower trigger that fires once per ``n`` input firings.

	The first output firing coincides with the ``n``-th input firing.
	Dividing by 1 returns the input unchanged.
	"""

	if not isinstance(n, int) or isinstance(n, bool) or n < 1:
		raise ValueError(f"Divisor must be a positive integer, got {n!r}")

	if n == 1:
		return trigger

	return Divider(trigger, n)


def split (trigger: driftwave.signal.Signal, k: int) -> typing.List[driftwave.signal.Signal]:

	"""
	Deal the firings of one trigger round-robin over ``k`` outputs.

	Output ``i`` receives input firings ``i``, ``i + k``, ``i + 2k``, ...
	(zero-based), so parallel voices never share a firing.
	"""

	if not isinstance(k, int) or isinstance(k, bool) or k < 1:
		raise ValueError(f"Split count must be a positive integer, got {k!r}")

	if k == 1:
		return [trigger]

	table = [1 << i for i in range(k)]
	return driftwave.pattern.PatternTriggers(trigger, table, width=k).triggers


def random_skip (
	trigger: driftwave.signal.Signal,
	probability: driftwave.signal.SignalLike,
	rng: typing.Optional[typing.Any] = None
) -> driftwave.signal.Signal:

	"""Randomly drop firings; ``rng`` needs only a ``random()`` method."""

	return RandomSkip(trigger, probability, rng if rng is not None else random.Random())


def to_gate (trigger: driftwave.signal.Signal, duration_s: typing.Optional[float] = None) -> driftwave.signal.Signal:

	"""
	Turn a trigger into a gate.

	Without a duration the gate is high on the trigger sample only, which is
	what percussive envelopes with no sustain want.
	"""

	if duration_s is None:
		return trigger

	if duration_s < 0:
		raise ValueError(f"Gate duration cannot be negative, got {duration_s}")

	return HeldGate(trigger, duration_s)
