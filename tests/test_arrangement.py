import math
import threading
import types
import typing

import numpy
import pytest
import soundfile

import driftwave
import driftwave.config
import driftwave.player
import driftwave.web_ui


@pytest.fixture
def config () -> driftwave.config.Config:

	"""A fast, low-rate config: 100 Hz clock at 8 kHz, so a trigger every 80 samples."""

	config = driftwave.config.Config()
	config.audio.sample_rate = 8000
	config.audio.block_size = 200
	config.clock.rate_hz = 100.0
	config.melody.division = 1
	config.melody.skip_probability = 0.0
	config.drums.division = 1
	return config


def test_build_is_cached (config: driftwave.config.Config) -> None:

	arrangement = driftwave.Arrangement(config)

	assert arrangement.build() is arrangement.build()
	assert len(arrangement.loops) == 1
	assert arrangement.drum_triggers is not None
	assert len(arrangement.drum_triggers.triggers) == 3


def test_one_loop_per_voice (config: driftwave.config.Config) -> None:

	config.melody.voices = 3
	arrangement = driftwave.Arrangement(config)
	arrangement.build()

	assert len(arrangement.loops) == 3


def test_voices_take_turns (config: driftwave.config.Config) -> None:

	config.melody.voices = 2
	arrangement = driftwave.Arrangement(config)

	arrangement.session.start()
	arrangement.session.render_block(800)

	assert [loop.triggers_seen for loop in arrangement.loops] == [5, 5]


def test_rendered_audio_is_bounded (config: driftwave.config.Config) -> None:

	arrangement = driftwave.Arrangement(config, seed=1)

	arrangement.session.start()
	block = arrangement.session.render_block(1600)

	assert all(math.isfinite(v) and -1.0 <= v <= 1.0 for v in block.tolist())
	assert abs(block).max() > 0


def test_state (config: driftwave.config.Config) -> None:

	arrangement = driftwave.Arrangement(config)

	assert arrangement.state()["playing"] is False

	arrangement.session.start()
	arrangement.session.render_block(800)
	state = arrangement.state()

	assert state["playing"] is True
	assert state["tick"] == 800
	assert state["seconds"] == pytest.approx(0.1)
	assert state["drum_step"] == 10
	assert state["loops"][0]["cursor"] == 10 % config.melody.length
	assert len(state["loops"][0]["slots"]) == config.melody.length


def test_seed_repeats_the_note_choices (config: driftwave.config.Config) -> None:

	def slots (seed: int) -> typing.List[typing.Optional[float]]:
		arrangement = driftwave.Arrangement(config, seed=seed)
		arrangement.session.start()
		arrangement.session.render_block(2400)
		return arrangement.loops[0].slots

	assert slots(7) == slots(7)
	assert slots(7) != slots(8)


def test_seed_from_config (config: driftwave.config.Config) -> None:

	config.seed = 5

	assert driftwave.Arrangement(config)._seed == 5
	assert driftwave.Arrangement(config, seed=6)._seed == 6


def test_drums_only (config: driftwave.config.Config) -> None:

	config.melody.enabled = False
	arrangement = driftwave.Arrangement(config)
	arrangement.build()

	assert arrangement.loops == []
	assert arrangement.state()["loops"] == []


def test_nothing_to_play (config: driftwave.config.Config) -> None:

	config.melody.enabled = False
	config.drums.enabled = False

	with pytest.raises(ValueError):
		driftwave.Arrangement(config).build()


@pytest.mark.parametrize("section, key, value", [
	("melody", "voices", 0),
	("melody", "division", 0),
	("melody", "mode", "nonexistent"),
	("drums", "pattern", "polka"),
	("drums", "instruments", []),
	("drums", "instruments", ["cowbell"]),
	("drums", "instruments", ["kick"] * 9),
	("clock", "rate_hz", 0.0),
])
def test_bad_settings_fail_at_build (config: driftwave.config.Config, section: str, key: str, value: typing.Any) -> None:

	setattr(getattr(config, section), key, value)

	with pytest.raises(ValueError):
		driftwave.Arrangement(config).build()


def test_transport_uses_the_audio_device (config: driftwave.config.Config, fake_sounddevice: types.ModuleType) -> None:

	arrangement = driftwave.Arrangement(config)

	arrangement.start()
	assert arrangement.player.is_open

	arrangement.stop()
	arrangement.set_gain(0.1)
	arrangement.session.render_block(10)

	assert arrangement.session.playing is False
	assert arrangement.session.gain == pytest.approx(0.1)

	arrangement.player.close()


def test_render (config: driftwave.config.Config, tmp_path: typing.Any) -> None:

	filename = str(tmp_path / "piece.wav")
	frames = driftwave.Arrangement(config).render(0.1, filename)

	assert frames == 800
	assert soundfile.info(filename).frames == 800


def test_from_config_path (tmp_path: typing.Any) -> None:

	path = tmp_path / "driftwave.yaml"
	path.write_text("melody:\n  voices: 2\n")

	arrangement = driftwave.Arrangement.from_config(str(path), seed=4)

	assert arrangement.config.melody.voices == 2
	assert arrangement._seed == 4


def test_from_config_object (config: driftwave.config.Config) -> None:

	assert driftwave.Arrangement.from_config(config).config is config


def test_mix_gain_is_the_session_gain (config: driftwave.config.Config) -> None:

	"""The configured gain seeds the session and is not also baked into the graph."""

	config.drums.enabled = False
	config.mix.gain = 0.5

	quiet = driftwave.Arrangement(config, seed=3)
	assert quiet.state()["gain"] == pytest.approx(0.5)

	quiet.set_gain(1.0)
	quiet.session.start()

	config.mix.gain = 1.0
	full = driftwave.Arrangement(config, seed=3)
	full.session.start()

	assert numpy.array_equal(quiet.session.render_block(800), full.session.render_block(800))


def test_failed_web_start_is_not_retried (config: driftwave.config.Config, fake_sounddevice: types.ModuleType) -> None:

	fake_sounddevice.OutputStream.fail_with = fake_sounddevice.PortAudioError("No such device")
	arrangement = driftwave.Arrangement(config)
	ui = driftwave.web_ui.WebUI(arrangement)

	for _ in range(3):
		with pytest.raises(driftwave.player.AudioDeviceError):
			ui.handle_message('{"command": "start"}')

	assert fake_sounddevice.OutputStream.attempts == 1


def test_device_failure_ends_play (config: driftwave.config.Config, fake_sounddevice: types.ModuleType) -> None:

	"""A Start that could not open the device stops the run loop with the error."""

	fake_sounddevice.OutputStream.fail_with = fake_sounddevice.PortAudioError("No such device")
	arrangement = driftwave.Arrangement(config)

	with pytest.raises(driftwave.player.AudioDeviceError):
		arrangement.start()

	with pytest.raises(driftwave.player.AudioDeviceError, match="No such device"):
		arrangement.play(autostart=False)

	assert fake_sounddevice.OutputStream.attempts == 1


def test_concurrent_starts_build_one_player (config: driftwave.config.Config, fake_sounddevice: types.ModuleType) -> None:

	fake_sounddevice.OutputStream.delay = 0.05
	arrangement = driftwave.Arrangement(config)

	threads = [threading.Thread(target=arrangement.start) for _ in range(2)]

	for thread in threads:
		thread.start()

	for thread in threads:
		thread.join()

	assert len(fake_sounddevice.OutputStream.instances) == 1
	assert len(arrangement.loops) == 1

	arrangement.player.close()
