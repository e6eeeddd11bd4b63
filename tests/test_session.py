import typing

import numpy
import pytest

import driftwave.replace_loop
import driftwave.session
import driftwave.signal


def _ticking_session (value: float = 0.5, gain: float = 1.0) -> typing.Tuple[driftwave.session.Session, typing.List[int]]:

	"""A session over a constant that records which ticks were sampled."""

	ticks: typing.List[int] = []

	def record (ctx: driftwave.signal.Context) -> float:
		ticks.append(ctx.tick)
		return value

	return driftwave.session.Session(driftwave.signal.from_fn(record), 100, gain=gain), ticks


def test_silent_until_started () -> None:

	session, ticks = _ticking_session()

	block = session.render_block(8)

	assert block.dtype == numpy.float32
	assert not block.any()
	assert session.tick == 0
	assert ticks == []


def test_commands_apply_at_the_next_block () -> None:

	session, _ = _ticking_session()

	session.start()
	assert session.playing is False

	block = session.render_block(4)

	assert session.playing is True
	assert block.tolist() == [0.5] * 4
	assert session.tick == 4


def test_stop_keeps_the_clock_and_state () -> None:

	"""Stopping then starting carries on from the exact tick it paused on."""

	session, ticks = _ticking_session()

	session.start()
	session.render_block(5)
	session.stop()
	silent = session.render_block(5)
	session.start()
	session.render_block(5)

	assert not silent.any()
	assert ticks == list(range(10))
	assert session.tick == 10
	assert session.seconds == pytest.approx(0.1)


def test_stop_preserves_sequencer_state () -> None:

	trigger = driftwave.signal.from_fn(lambda ctx: True)
	palette = driftwave.signal.from_fn(lambda ctx: 100.0 + ctx.tick)
	loop = driftwave.replace_loop.ReplaceLoop(trigger, 1.0, palette, length=3)

	session = driftwave.session.Session(loop * 0.001, 100)

	session.start()
	session.render_block(2)
	slots_before = loop.slots

	session.stop()
	session.render_block(50)

	assert loop.cursor == 2
	assert loop.slots == slots_before

	session.start()
	session.render_block(1)

	assert loop.cursor == 0
	assert loop.slots[2] == 102.0


def test_gain_and_clipping () -> None:

	session, _ = _ticking_session(value=0.75)

	session.start()
	session.set_gain(0.5)
	assert session.render_block(1).tolist() == [0.375]

	session.set_gain(4.0)
	assert session.render_block(1).tolist() == [1.0]

	session.set_gain(-1.0)
	assert session.render_block(1).tolist() == [0.0]
	assert session.gain == 0.0


def test_negative_values_clip () -> None:

	session, _ = _ticking_session(value=-3.0)

	session.start()

	assert session.render_block(2).tolist() == [-1.0, -1.0]


def test_non_finite_samples_become_silence () -> None:

	values = [float("nan"), float("inf"), 0.25]
	session = driftwave.session.Session(driftwave.signal.from_fn(lambda ctx: values[ctx.tick]), 100)

	session.start()

	assert session.render_block(3).tolist() == [0.0, 0.0, 0.25]


def test_start_and_stop_are_idempotent () -> None:

	session, _ = _ticking_session()

	session.start()
	session.start()
	session.render_block(1)
	assert session.playing

	session.stop()
	session.stop()
	session.render_block(1)
	assert not session.playing
