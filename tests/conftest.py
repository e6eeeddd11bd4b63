import sys
import time
import types
import typing

import pytest

import driftwave.signal


class SequenceRng:

	"""Random source stub that returns a fixed sequence of ``random()`` values, cycling."""

	def __init__ (self, values: typing.Sequence[float]) -> None:

		self.values = list(values)
		self.calls = 0

	def random (self) -> float:

		value = self.values[self.calls % len(self.values)]
		self.calls += 1
		return value


class FakePortAudioError (Exception):
	pass


class FakeCallbackAbort (Exception):
	pass


class FakeOutputStream:

	"""Minimal sounddevice.OutputStream stub that records how it was opened."""

	fail_with: typing.Optional[BaseException] = None
	instances: typing.List["FakeOutputStream"] = []
	attempts = 0
	delay = 0.0

	def __init__ (self, **kwargs: typing.Any) -> None:

		FakeOutputStream.attempts += 1

		# Widens the window in which two openers could race.
		if FakeOutputStream.delay:
			time.sleep(FakeOutputStream.delay)

		if FakeOutputStream.fail_with is not None:
			raise FakeOutputStream.fail_with

		self.kwargs = kwargs
		self.started = False
		self.closed = False
		FakeOutputStream.instances.append(self)

	def start (self) -> None:
		self.started = True

	def stop (self) -> None:
		self.started = False

	def close (self) -> None:
		self.closed = True


@pytest.fixture
def fake_sounddevice (monkeypatch: pytest.MonkeyPatch) -> types.ModuleType:

	"""Replace sounddevice with a stub so no audio device is needed."""

	module = types.ModuleType("sounddevice")
	module.OutputStream = FakeOutputStream  # type: ignore[attr-defined]
	module.PortAudioError = FakePortAudioError  # type: ignore[attr-defined]
	module.CallbackAbort = FakeCallbackAbort  # type: ignore[attr-defined]

	monkeypatch.setattr(FakeOutputStream, "fail_with", None)
	monkeypatch.setattr(FakeOutputStream, "instances", [])
	monkeypatch.setattr(FakeOutputStream, "attempts", 0)
	monkeypatch.setattr(FakeOutputStream, "delay", 0.0)
	monkeypatch.setitem(sys.modules, "sounddevice", module)

	return module


@pytest.fixture
def trigger_at () -> typing.Callable[..., driftwave.signal.Signal]:

	"""Build a trigger that fires on the given ticks only."""

	def make (*ticks: int) -> driftwave.signal.Signal:
		fire = set(ticks)
		return driftwave.signal.from_fn(lambda ctx: ctx.tick in fire)

	return make


@pytest.fixture
def every_tick () -> driftwave.signal.Signal:

	"""A trigger that fires on every tick."""

	return driftwave.signal.from_fn(lambda ctx: True)


def run_together (signals: typing.Sequence[driftwave.signal.Signal], ticks: int, sample_rate: int = 100) -> typing.List[typing.List[typing.Any]]:

	"""Sample several signals on one shared clock; returns one row per tick."""

	ctx = driftwave.signal.Context(sample_rate)
	rows = []

	for _ in range(ticks):
		rows.append([s.sample(ctx) for s in signals])
		ctx.advance()

	return rows


@pytest.fixture
def sample_together () -> typing.Callable[..., typing.List[typing.List[typing.Any]]]:
	return run_together


@pytest.fixture
def sequence_rng () -> typing.Type[SequenceRng]:
	return SequenceRng


@pytest.fixture
def read_log () -> typing.Callable[[typing.Any], typing.Tuple[driftwave.signal.Signal, typing.List[int]]]:

	"""Build a constant signal that records the tick of every fresh read."""

	def make (value: typing.Any) -> typing.Tuple[driftwave.signal.Signal, typing.List[int]]:

		ticks: typing.List[int] = []

		def read (ctx: driftwave.signal.Context) -> typing.Any:
			ticks.append(ctx.tick)
			return value

		return driftwave.signal.from_fn(read), ticks

	return make
