"""Pull-based, per-sample signals.

A :class:`Signal` produces one value per tick of a shared :class:`Context`.
Values are computed lazily when a consumer calls :meth:`Signal.sample` and are
cached for the rest of that tick, so a stateful node (an oscillator phase, a
sequencer cursor) advances exactly once per tick no matter how many consumers
read it.  Consumers pull their producers, which gives producer-before-consumer
evaluation order without an explicit scheduler.

Signals compose with ordinary arithmetic::

	freq = driftwave.signal.const(110.0) + lfo * 20.0
	out = osc.filter(driftwave.dsp.low_pass_moog_ladder(freq * 8))
"""

import math
import typing


class Context:

	"""The global sample clock shared by every node in a graph."""

	def __init__ (self, sample_rate: int, tick: int = 0) -> None:

		if sample_rate <= 0:
			raise ValueError(f"Sample rate must be positive, got {sample_rate}")

		self.sample_rate = sample_rate
		self.tick = tick

	def advance (self) -> None:

		"""Move the clock forward by one sample."""

		self.tick += 1

	@property
	def seconds (self) -> float:

		"""Elapsed time in seconds at the current tick."""

		return self.tick / self.sample_rate


class Filter:

	"""
	A DSP unit that transforms one input value per tick.

	Subclasses implement :meth:`process`.  A filter instance carries private
	state and must only be attached to one signal chain.
	"""

	def process (self, ctx: Context, value: typing.Any) -> typing.Any:
		raise NotImplementedError


SignalLike = typing.Union["Signal", float, int, bool]


class Signal:

	"""
	Base class for every node in a signal graph.

	Subclasses implement :meth:`_compute`, which is called at most once per
	tick.  Everything else (caching, arithmetic, filtering) lives here.
	"""

	def __init__ (self) -> None:

		self._cached_tick: typing.Optional[int] = None
		self._cached_value: typing.Any = None

	def sample (self, ctx: Context) -> typing.Any:

		"""Return the value at ``ctx.tick``, computing it on first read."""

		if self._cached_tick != ctx.tick:
			self._cached_value = self._compute(ctx)
			self._cached_tick = ctx.tick

		return self._cached_value

	def _compute (self, ctx: Context) -> typing.Any:
		raise NotImplementedError

	# Composition

	def filter (self, unit: Filter) -> "Signal":

		"""Pass this signal through a DSP unit."""

		return Filtered(self, unit)

	def map (self, fn: typing.Callable[[typing.Any], typing.Any]) -> "Signal":

		"""Apply a pure function to each value."""

		return Mapped(self, fn)

	def clamp (self, low: float, high: float) -> "Signal":
		return Mapped(self, lambda v: max(low, min(high, v)))

	def exp_01 (self, k: float = 1.0) -> "Signal":

		"""
		Bend a 0..1 signal into an exponential curve.

		``k`` controls the curvature; 0 leaves the signal linear.
		"""

		if k == 0:
			return self

		denominator = math.exp(k) - 1.0
		return Mapped(self, lambda v: (math.exp(k * v) - 1.0) / denominator)

	def signed_to_01 (self) -> "Signal":

		"""Map a -1..1 signal onto 0..1."""

		return Mapped(self, lambda v: (v + 1.0) / 2.0)

	# Arithmetic

	def __add__ (self, other: SignalLike) -> "Signal":
		return Combined(self, to_signal(other), _add)

	def __radd__ (self, other: SignalLike) -> "Signal":
		return Combined(to_signal(other), self, _add)

	def __sub__ (self, other: SignalLike) -> "Signal":
		return Combined(self, to_signal(other), _sub)

	def __rsub__ (self, other: SignalLike) -> "Signal":
		return Combined(to_signal(other), self, _sub)

	def __mul__ (self, other: SignalLike) -> "Signal":
		return Combined(self, to_signal(other), _mul)

	def __rmul__ (self, other: SignalLike) -> "Signal":
		return Combined(to_signal(other), self, _mul)

	def __truediv__ (self, other: SignalLike) -> "Signal":
		return Combined(self, to_signal(other), _div)

	def __neg__ (self) -> "Signal":
		return Mapped(self, lambda v: -v)


def _add (a: typing.Any, b: typing.Any) -> typing.Any:
	return a + b


def _sub (a: typing.Any, b: typing.Any) -> typing.Any:
	return a - b


def _mul (a: typing.Any, b: typing.Any) -> typing.Any:
	return a * b


def _div (a: typing.Any, b: typing.Any) -> typing.Any:
	return a / b


class Const (Signal):

	"""A signal that never changes."""

	def __init__ (self, value: typing.Any) -> None:

		super().__init__()
		self.value = value

	def sample (self, ctx: Context) -> typing.Any:
		return self.value

	def _compute (self, ctx: Context) -> typing.Any:
		return self.value


class FromFn (Signal):

	"""A signal computed by a callable, which may close over private state."""

	def __init__ (self, fn: typing.Callable[[Context], typing.Any]) -> None:

		super().__init__()
		self._fn = fn

	def _compute (self, ctx: Context) -> typing.Any:
		return self._fn(ctx)


class Mapped (Signal):

	def __init__ (self, source: Signal, fn: typing.Callable[[typing.Any], typing.Any]) -> None:

		super().__init__()
		self._source = source
		self._fn = fn

	def _compute (self, ctx: Context) -> typing.Any:
		return self._fn(self._source.sample(ctx))


class Combined (Signal):

	def __init__ (self, left: Signal, right: Signal, op: typing.Callable[[typing.Any, typing.Any], typing.Any]) -> None:

		super().__init__()
		self._left = left
		self._right = right
		self._op = op

	def _compute (self, ctx: Context) -> typing.Any:
		return self._op(self._left.sample(ctx), self._right.sample(ctx))


class Filtered (Signal):

	def __init__ (self, source: Signal, unit: Filter) -> None:

		super().__init__()
		self._source = source
		self._unit = unit

	def _compute (self, ctx: Context) -> typing.Any:
		return self._unit.process(ctx, self._source.sample(ctx))


def const (value: typing.Any) -> Const:
	return Const(value)


def from_fn (fn: typing.Callable[[Context], typing.Any]) -> FromFn:
	return FromFn(fn)


def to_signal (value: SignalLike) -> Signal:

	"""Promote a plain number (or bool) to a constant signal."""

	if isinstance(value, Signal):
		return value

	if isinstance(value, (int, float, bool)):
		return Const(value)

	raise TypeError(f"Cannot use {type(value).__name__} as a signal")


def mix (signals: typing.Sequence[Signal]) -> Signal:

	"""Sum several signals into one."""

	if not signals:
		raise ValueError("Cannot mix an empty list of signals")

	total = signals[0]

	for signal in signals[1:]:
		total = total + signal

	return total


def collect (signal: Signal, ticks: int, ctx: typing.Optional[Context] = None, sample_rate: int = 44100) -> typing.List[typing.Any]:

	"""
	Sample a signal for a number of ticks, advancing the clock after each.

	Handy for offline inspection and tests.  Pass an existing ``ctx`` to
	continue from where a previous call stopped.
	"""

	if ctx is None:
		ctx = Context(sample_rate)

	values = []

	for _ in range(ticks):
		values.append(signal.sample(ctx))
		ctx.advance()

	return values
