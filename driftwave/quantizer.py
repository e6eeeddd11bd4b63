"""Snap frequencies to a scale.

The scale is a set of octave-zero base frequencies.  The candidate pitches are
every base frequency multiplied by ``2 ** k`` for each octave ``k`` in a
bounded range, and a quantized frequency is always exactly one of those
candidates.
"""

import math
import random
import typing

import driftwave.dsp
import driftwave.signal


DEFAULT_OCTAVES: typing.Tuple[int, int] = (-4, 10)


class ScaleQuantizer:

	"""
	Nearest-pitch lookup over a scale replicated across octaves.

	Parameters:
		base_frequencies: One frequency per scale degree, in Hz.  Must be
			non-empty, positive and free of duplicates.
		octaves: Inclusive ``(lowest, highest)`` octave multipliers.  The
			default covers the audible range for base frequencies at octave 0.
	"""

	def __init__ (self, base_frequencies: typing.Sequence[float], octaves: typing.Tuple[int, int] = DEFAULT_OCTAVES) -> None:

		if not base_frequencies:
			raise ValueError("A scale needs at least one base frequency")

		if len(set(base_frequencies)) != len(base_frequencies):
			raise ValueError(f"Scale has duplicate base frequencies: {list(base_frequencies)}")

		for freq in base_frequencies:
			if freq <= 0:
				raise ValueError(f"Base frequencies must be positive, got {freq}")

		low, high = octaves

		if low > high:
			raise ValueError(f"Empty octave range: {octaves}")

		self.base_frequencies = list(base_frequencies)
		self.octaves = (low, high)

		# ldexp scales by a power of two exactly, so candidates are exact members.
		self.candidates: typing.List[float] = sorted(
			math.ldexp(base, k) for base in self.base_frequencies for k in range(low, high + 1)
		)

	def quantize (self, freq: float) -> float:

		"""
		Return the candidate closest to ``freq``.

		When two candidates are equally close the lower one wins.
		"""

		best = self.candidates[0]
		best_distance = abs(freq - best)

		# Ascending order plus strict '<' keeps the lower of two equal distances.
		for candidate in self.candidates[1:]:
			distance = abs(freq - candidate)
			if distance < best_distance:
				best = candidate
				best_distance = distance
			elif candidate > freq:
				break

		return best


class QuantizeToScale (driftwave.signal.Filter):

	"""Signal-chain unit that quantizes a frequency signal."""

	def __init__ (self, quantizer: ScaleQuantizer) -> None:
		self.quantizer = quantizer

	def process (self, ctx: driftwave.signal.Context, value: float) -> float:
		return self.quantizer.quantize(value)


def quantize_to_scale (base_frequencies: typing.Sequence[float], octaves: typing.Tuple[int, int] = DEFAULT_OCTAVES) -> QuantizeToScale:
	return QuantizeToScale(ScaleQuantizer(base_frequencies, octaves))


def random_note (
	base_frequencies: typing.Sequence[float],
	base_hz: driftwave.signal.SignalLike,
	range_hz: driftwave.signal.SignalLike,
	rng: typing.Optional[random.Random] = None
) -> driftwave.signal.Signal:

	"""
	A palette of random in-scale pitches.

	Each read on a new tick draws uniformly from ``[base_hz, base_hz + range_hz)``
	and snaps the result to the scale.
	"""

	freq = driftwave.signal.to_signal(base_hz) + driftwave.dsp.noise_01(rng) * range_hz
	return freq.filter(quantize_to_scale(base_frequencies))
