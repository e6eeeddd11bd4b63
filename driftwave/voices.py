"""Instrument chains: one melodic synth voice and a three-piece drum kit.

Each function takes its control signals (pitch, gate or trigger) and returns
an audio signal.  Levels are left roughly in -1..1 before mixing.
"""

import random
import typing

import driftwave.dsp
import driftwave.signal
import driftwave.triggers


def synth_voice (freq: driftwave.signal.Signal, gate: driftwave.signal.Signal) -> driftwave.signal.Signal:

	"""Two saws an octave apart through an enveloped resonant low pass."""

	osc = (
		driftwave.dsp.oscillator("saw", freq)
		+ driftwave.dsp.oscillator("saw", freq * 2.0)
	)

	env_amp = driftwave.dsp.adsr_linear_01(gate, attack_s=0.01, release_s=2.0)
	env_lpf = driftwave.dsp.adsr_linear_01(gate, attack_s=0.01, release_s=0.3).exp_01(1.0)

	return (
		osc.filter(driftwave.dsp.low_pass_resonant(8000.0 * env_lpf, resonance=4.0))
		.filter(driftwave.dsp.saturate(scale=2.0, low=-1.0, high=1.0))
		* env_amp
	)


def kick (trigger: driftwave.signal.Signal) -> driftwave.signal.Signal:

	"""A triangle whose pitch and level drop away fast."""

	gate = driftwave.triggers.to_gate(trigger)
	duration_s = 0.1

	freq_hz = driftwave.dsp.adsr_linear_01(gate, release_s=duration_s).exp_01(1.0) * 120.0
	osc = driftwave.dsp.oscillator("triangle", freq_hz)

	env_amp = (
		driftwave.dsp.adsr_linear_01(gate, release_s=duration_s)
		.exp_01(1.0)
		.filter(driftwave.dsp.low_pass_moog_ladder(1000.0))
	)

	return (osc * env_amp).filter(driftwave.dsp.compress(ratio=0.02, scale=16.0))


def snare (trigger: driftwave.signal.Signal, rng: typing.Optional[random.Random] = None) -> driftwave.signal.Signal:

	"""Crushed noise plus a falling pulse, reset on every hit."""

	gate = driftwave.triggers.to_gate(trigger)
	duration_s = 0.1

	noise = (
		driftwave.dsp.noise(rng)
		.filter(driftwave.dsp.compress(ratio=0.1, scale=100.0))
		.filter(driftwave.dsp.low_pass_moog_ladder(10000.0, resonance=2.0))
		.filter(driftwave.dsp.down_sample(10.0))
	)

	env = (
		driftwave.dsp.adsr_linear_01(gate, release_s=duration_s)
		.exp_01(1.0)
		.filter(driftwave.dsp.low_pass_moog_ladder(1000.0))
	)

	freq_hz = driftwave.dsp.adsr_linear_01(gate, release_s=duration_s).exp_01(1.0) * 240.0
	osc = driftwave.dsp.oscillator("pulse", freq_hz, reset_trigger=trigger)

	return (noise + osc).filter(driftwave.dsp.down_sample(10.0)) * env


def cymbal (trigger: driftwave.signal.Signal, rng: typing.Optional[random.Random] = None) -> driftwave.signal.Signal:

	"""High-passed noise with a short swept low pass."""

	gate = driftwave.triggers.to_gate(trigger)

	env = (
		driftwave.dsp.adsr_linear_01(gate, release_s=0.1)
		.filter(driftwave.dsp.low_pass_butterworth(100.0))
	)

	return (
		driftwave.dsp.noise(rng)
		.filter(driftwave.dsp.low_pass_moog_ladder(10000.0 * env))
		.filter(driftwave.dsp.high_pass_butterworth(6000.0))
	)


INSTRUMENTS: typing.Dict[str, typing.Callable[..., driftwave.signal.Signal]] = {
	"kick": kick,
	"snare": snare,
	"cymbal": cymbal,
}


def instrument (name: str) -> typing.Callable[..., driftwave.signal.Signal]:

	"""Look up a drum instrument by name."""

	if name not in INSTRUMENTS:
		raise ValueError(f"Unknown instrument {name!r}. Available: {sorted(INSTRUMENTS)}")

	return INSTRUMENTS[name]
