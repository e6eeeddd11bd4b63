"""Per-sample DSP units.

Sources (oscillators, noise, envelopes) are :class:`~driftwave.signal.Signal`
subclasses; processors (filters, dynamics, effects) are
:class:`~driftwave.signal.Filter` subclasses applied with ``signal.filter()``.
Every numeric parameter accepts a number or a signal, so anything can be
modulated.  Each unit keeps its own state and advances once per tick.
"""

import math
import random
import typing

import driftwave.signal


SHAPES = ("sine", "triangle", "saw", "pulse", "square")

ADSR_ATTACK = "attack"
ADSR_DECAY = "decay"
ADSR_SUSTAIN = "sustain"
ADSR_RELEASE = "release"


def _param (value: driftwave.signal.SignalLike) -> driftwave.signal.Signal:
	return driftwave.signal.to_signal(value)


# Sources

class Oscillator (driftwave.signal.Signal):

	"""
	A naive (non band-limited) oscillator in the range -1..1.

	Parameters:
		shape: One of ``"sine"``, ``"triangle"``, ``"saw"``, ``"pulse"``, ``"square"``.
		freq_hz: Frequency in Hz.
		pulse_width: Duty cycle of the ``"pulse"`` shape (0-1).
		reset_trigger: Optional trigger that snaps the phase back to 0.
	"""

	def __init__ (
		self,
		shape: str,
		freq_hz: driftwave.signal.SignalLike,
		pulse_width: driftwave.signal.SignalLike = 0.5,
		reset_trigger: typing.Optional[driftwave.signal.Signal] = None
	) -> None:

		if shape not in SHAPES:
			raise ValueError(f"Unknown oscillator shape {shape!r}. Available: {SHAPES}")

		super().__init__()
		self.shape = shape
		self._freq_hz = _param(freq_hz)
		self._pulse_width = _param(pulse_width)
		self._reset_trigger = reset_trigger
		self._phase = 0.0
		self._increment = 0.0
		self._last_tick: typing.Optional[int] = None

	def _compute (self, ctx: driftwave.signal.Context) -> float:

		# Ticks nobody read still move the phase, at the last frequency seen.
		if self._last_tick is not None and ctx.tick > self._last_tick:
			self._phase = (self._phase + self._increment * (ctx.tick - self._last_tick)) % 1.0

		self._last_tick = ctx.tick

		pulse_width = self._pulse_width.sample(ctx)

		if self._reset_trigger is not None and self._reset_trigger.sample(ctx):
			self._phase = 0.0

		phase = self._phase

		if self.shape == "sine":
			value = math.sin(2 * math.pi * phase)

		elif self.shape == "triangle":
			# Starts at 0 rising, like the sine.
			value = 1.0 - 4.0 * abs(((phase + 0.25) % 1.0) - 0.5)

		elif self.shape == "saw":
			value = 2.0 * phase - 1.0

		elif self.shape == "pulse":
			value = 1.0 if phase < pulse_width else -1.0

		else:
			value = 1.0 if phase < 0.5 else -1.0

		self._increment = self._freq_hz.sample(ctx) / ctx.sample_rate
		return value


class Noise (driftwave.signal.Signal):

	"""Uniform white noise between ``low`` and ``high``."""

	def __init__ (self, low: float = -1.0, high: float = 1.0, rng: typing.Optional[random.Random] = None) -> None:

		super().__init__()
		self.low = low
		self.high = high
		self._rng = rng if rng is not None else random.Random()

	def _compute (self, ctx: driftwave.signal.Context) -> float:
		return self.low + self._rng.random() * (self.high - self.low)


class AdsrLinear01 (driftwave.signal.Signal):

	"""
	Linear ADSR envelope between 0 and 1, driven by a gate.

	A rising gate edge restarts the attack from the current level, so fast
	retriggers do not click.  A zero-length stage completes within one sample.
	"""

	def __init__ (
		self,
		gate: driftwave.signal.Signal,
		attack_s: float = 0.0,
		decay_s: float = 0.0,
		sustain_01: float = 1.0,
		release_s: float = 0.0
	) -> None:

		for name, value in (("attack_s", attack_s), ("decay_s", decay_s), ("release_s", release_s)):
			if value < 0:
				raise ValueError(f"{name} cannot be negative, got {value}")

		if not 0.0 <= sustain_01 <= 1.0:
			raise ValueError(f"sustain_01 must be between 0 and 1, got {sustain_01}")

		super().__init__()
		self._gate = gate
		self.attack_s = attack_s
		self.decay_s = decay_s
		self.sustain_01 = sustain_01
		self.release_s = release_s
		self.stage = ADSR_RELEASE
		self.level = 0.0
		self._gate_was_high = False

	def _compute (self, ctx: driftwave.signal.Context) -> float:

		gate = bool(self._gate.sample(ctx))
		sample_rate = ctx.sample_rate

		if gate and not self._gate_was_high:
			self.stage = ADSR_ATTACK

		if not gate:
			self.stage = ADSR_RELEASE

		self._gate_was_high = gate

		if self.stage == ADSR_ATTACK:
			self.level += _step(1.0, self.attack_s, sample_rate)

			if self.level >= 1.0:
				self.level = 1.0
				self.stage = ADSR_DECAY

		elif self.stage == ADSR_DECAY:
			self.level -= _step(1.0 - self.sustain_01, self.decay_s, sample_rate)

			if self.level <= self.sustain_01:
				self.level = self.sustain_01
				self.stage = ADSR_SUSTAIN

		elif self.stage == ADSR_RELEASE:
			self.level = max(0.0, self.level - _step(1.0, self.release_s, sample_rate))

		return self.level


def _step (distance: float, duration_s: float, sample_rate: int) -> float:

	"""Per-sample increment covering ``distance`` in ``duration_s``."""

	if duration_s <= 0:
		return math.inf

	return distance / (duration_s * sample_rate)


# Processors

class Biquad (driftwave.signal.Filter):

	"""Second-order low or high pass (RBJ cookbook), direct form I."""

	def __init__ (self, kind: str, cutoff_hz: driftwave.signal.SignalLike, q: driftwave.signal.SignalLike) -> None:

		if kind not in ("low", "high"):
			raise ValueError(f"Biquad kind must be 'low' or 'high', got {kind!r}")

		self.kind = kind
		self._cutoff_hz = _param(cutoff_hz)
		self._q = _param(q)
		self._coefficients = (0.0, 0.0, 0.0, 0.0, 0.0)
		self._key: typing.Optional[typing.Tuple[float, float, int]] = None
		self._x1 = self._x2 = self._y1 = self._y2 = 0.0

	def _update (self, cutoff_hz: float, q: float, sample_rate: int) -> None:

		key = (cutoff_hz, q, sample_rate)

		if key == self._key:
			return

		self._key = key
		cutoff_hz = max(10.0, min(cutoff_hz, 0.45 * sample_rate))
		q = max(0.05, q)

		w0 = 2.0 * math.pi * cutoff_hz / sample_rate
		cos_w0 = math.cos(w0)
		alpha = math.sin(w0) / (2.0 * q)
		a0 = 1.0 + alpha

		if self.kind == "low":
			b0 = b2 = (1.0 - cos_w0) / 2.0
			b1 = 1.0 - cos_w0
		else:
			b0 = b2 = (1.0 + cos_w0) / 2.0
			b1 = -(1.0 + cos_w0)

		self._coefficients = (b0 / a0, b1 / a0, b2 / a0, (-2.0 * cos_w0) / a0, (1.0 - alpha) / a0)

	def process (self, ctx: driftwave.signal.Context, value: float) -> float:

		self._update(self._cutoff_hz.sample(ctx), self._q.sample(ctx), ctx.sample_rate)
		b0, b1, b2, a1, a2 = self._coefficients

		y = b0 * value + b1 * self._x1 + b2 * self._x2 - a1 * self._y1 - a2 * self._y2

		self._x2, self._x1 = self._x1, value
		self._y2, self._y1 = self._y1, y
		return y


class MoogLadder (driftwave.signal.Filter):

	"""
	Four-pole resonant low pass in the style of the Moog ladder.

	``resonance`` runs from 0 (none) to about 4 (self-oscillation).
	"""

	def __init__ (self, cutoff_hz: driftwave.signal.SignalLike, resonance: driftwave.signal.SignalLike = 0.0) -> None:

		self._cutoff_hz = _param(cutoff_hz)
		self._resonance = _param(resonance)
		self._inputs = [0.0, 0.0, 0.0, 0.0]
		self._outputs = [0.0, 0.0, 0.0, 0.0]

	def process (self, ctx: driftwave.signal.Context, value: float) -> float:

		nyquist = ctx.sample_rate / 2.0
		f = max(0.0, min(1.0, 1.16 * self._cutoff_hz.sample(ctx) / nyquist))
		feedback = max(0.0, self._resonance.sample(ctx)) * (1.0 - 0.15 * f * f)

		x = (value - self._outputs[3] * feedback) * 0.35013 * (f * f) * (f * f)

		for stage in range(4):
			y = x + 0.3 * self._inputs[stage] + (1.0 - f) * self._outputs[stage]
			self._inputs[stage] = x
			self._outputs[stage] = y
			x = y

		return self._outputs[3]


class Compressor (driftwave.signal.Filter):

	"""
	Static compressor: scale the input, then squash magnitude above a threshold.

	A ``ratio`` below 1 compresses, 1 leaves the signal alone.
	"""

	def __init__ (
		self,
		threshold: driftwave.signal.SignalLike = 1.0,
		ratio: driftwave.signal.SignalLike = 1.0,
		scale: driftwave.signal.SignalLike = 1.0
	) -> None:

		self._threshold = _param(threshold)
		self._ratio = _param(ratio)
		self._scale = _param(scale)

	def process (self, ctx: driftwave.signal.Context, value: float) -> float:

		x = value * self._scale.sample(ctx)
		threshold = self._threshold.sample(ctx)
		ratio = self._ratio.sample(ctx)
		magnitude = abs(x)

		if magnitude <= threshold:
			return x

		squashed = threshold + (magnitude - threshold) * ratio
		return math.copysign(squashed, x)


class Saturate (driftwave.signal.Filter):

	def __init__ (self, scale: driftwave.signal.SignalLike = 1.0, low: float = -1.0, high: float = 1.0) -> None:

		self._scale = _param(scale)
		self.low = low
		self.high = high

	def process (self, ctx: driftwave.signal.Context, value: float) -> float:
		return max(self.low, min(self.high, math.tanh(value * self._scale.sample(ctx))))


class DownSample (driftwave.signal.Filter):

	"""Hold every ``factor``-th input sample, for a lo-fi crunch."""

	def __init__ (self, factor: float) -> None:

		if factor < 1:
			raise ValueError(f"Down-sample factor must be at least 1, got {factor}")

		self.period = max(1, round(factor))
		self._count = 0
		self._held = 0.0

	def process (self, ctx: driftwave.signal.Context, value: float) -> float:

		if self._count == 0:
			self._held = value

		self._count = (self._count + 1) % self.period
		return self._held


class Echo (driftwave.signal.Filter):

	"""Feedback delay: ``out = in + scale * out[t - time_s]``."""

	def __init__ (self, time_s: float, scale: driftwave.signal.SignalLike = 0.5) -> None:

		if time_s <= 0:
			raise ValueError(f"Echo time must be positive, got {time_s}")

		self.time_s = time_s
		self._scale = _param(scale)
		self._buffer: typing.List[float] = []
		self._position = 0

	def process (self, ctx: driftwave.signal.Context, value: float) -> float:

		if not self._buffer:
			self._buffer = [0.0] * max(1, round(self.time_s * ctx.sample_rate))

		out = value + self._scale.sample(ctx) * self._buffer[self._position]
		self._buffer[self._position] = out
		self._position = (self._position + 1) % len(self._buffer)
		return out


# Builders

def oscillator (
	shape: str,
	freq_hz: driftwave.signal.SignalLike,
	pulse_width: driftwave.signal.SignalLike = 0.5,
	reset_trigger: typing.Optional[driftwave.signal.Signal] = None
) -> Oscillator:
	return Oscillator(shape, freq_hz, pulse_width, reset_trigger)


def oscillator_s (shape: str, period_s: float) -> Oscillator:

	"""An oscillator specified by its period, for slow modulation."""

	if period_s <= 0:
		raise ValueError(f"Period must be positive, got {period_s}")

	return Oscillator(shape, 1.0 / period_s)


def noise (rng: typing.Optional[random.Random] = None) -> Noise:
	return Noise(-1.0, 1.0, rng)


def noise_01 (rng: typing.Optional[random.Random] = None) -> Noise:
	return Noise(0.0, 1.0, rng)


def adsr_linear_01 (
	gate: driftwave.signal.Signal,
	attack_s: float = 0.0,
	decay_s: float = 0.0,
	sustain_01: float = 1.0,
	release_s: float = 0.0
) -> AdsrLinear01:
	return AdsrLinear01(gate, attack_s, decay_s, sustain_01, release_s)


def low_pass_butterworth (cutoff_hz: driftwave.signal.SignalLike) -> Biquad:
	return Biquad("low", cutoff_hz, 1.0 / math.sqrt(2.0))


def high_pass_butterworth (cutoff_hz: driftwave.signal.SignalLike) -> Biquad:
	return Biquad("high", cutoff_hz, 1.0 / math.sqrt(2.0))


def low_pass_resonant (cutoff_hz: driftwave.signal.SignalLike, resonance: driftwave.signal.SignalLike = 1.0) -> Biquad:

	"""Biquad low pass whose Q is ``resonance`` (0.707 is flat)."""

	return Biquad("low", cutoff_hz, resonance)


def low_pass_moog_ladder (cutoff_hz: driftwave.signal.SignalLike, resonance: driftwave.signal.SignalLike = 0.0) -> MoogLadder:
	return MoogLadder(cutoff_hz, resonance)


def compress (
	threshold: driftwave.signal.SignalLike = 1.0,
	ratio: driftwave.signal.SignalLike = 1.0,
	scale: driftwave.signal.SignalLike = 1.0
) -> Compressor:
	return Compressor(threshold, ratio, scale)


def saturate (scale: driftwave.signal.SignalLike = 1.0, low: float = -1.0, high: float = 1.0) -> Saturate:
	return Saturate(scale, low, high)


def down_sample (factor: float) -> DownSample:
	return DownSample(factor)


def echo (time_s: float, scale: driftwave.signal.SignalLike = 0.5) -> Echo:
	return Echo(time_s, scale)
