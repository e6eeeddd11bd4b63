"""YAML configuration.

A config file mirrors the dataclasses below, one mapping per section::

	clock:
	  rate_hz: 10.0
	melody:
	  voices: 2
	  replace_probability: 0.2
	drums:
	  pattern: break
	mix:
	  gain: 0.25

Every key is optional.  Unknown sections or keys are rejected so typos do not
go unnoticed.
"""

import dataclasses
import logging
import os
import typing

import yaml

import driftwave.constants
import driftwave.constants.drum_patterns


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class AudioConfig:

	"""Output stream settings."""

	sample_rate: int = driftwave.constants.DEFAULT_SAMPLE_RATE
	block_size: int = driftwave.constants.DEFAULT_BLOCK_SIZE
	device: typing.Optional[typing.Union[int, str]] = None
	latency: typing.Optional[typing.Union[float, str]] = None


@dataclasses.dataclass
class ClockConfig:

	rate_hz: float = driftwave.constants.DEFAULT_CLOCK_HZ


@dataclasses.dataclass
class MelodyConfig:

	"""Replace-loop voice settings."""

	enabled: bool = True
	division: int = 2
	voices: int = 1
	length: int = 8
	replace_probability: float = 0.1
	anchor_probability: float = 0.5
	skip_probability: float = 0.1
	anchor_note: str = "A"
	anchor_octave: int = 1
	palette_base_hz: float = 50.0
	palette_range_hz: float = 200.0
	key: str = "C"
	mode: str = "ionian"
	gate_s: float = 0.02
	level: float = 0.5
	echo_s: float = 0.2
	echo_scale: float = 0.5


@dataclasses.dataclass
class DrumConfig:

	enabled: bool = True
	division: int = 3
	pattern: str = "drift"
	instruments: typing.List[str] = dataclasses.field(
		default_factory=lambda: list(driftwave.constants.drum_patterns.CHANNEL_INSTRUMENTS)
	)
	echo_s: float = 0.1
	echo_scale: float = 0.5


@dataclasses.dataclass
class ModulationConfig:

	"""Slow modulation of the melodic voice's compressor and filter."""

	period_s: float = 60.0
	lfo_rate_hz: float = 2.0
	cutoff_hz: float = 6000.0
	cutoff_depth_hz: float = 2000.0
	compress_depth: float = 8.0


@dataclasses.dataclass
class MixConfig:

	gain: float = driftwave.constants.DEFAULT_GAIN


@dataclasses.dataclass
class WebConfig:

	http_port: int = 8080
	ws_port: int = 8765


@dataclasses.dataclass
class OscConfig:

	receive_port: int = 9000
	send_port: int = 9001
	send_host: str = "127.0.0.1"


@dataclasses.dataclass
class Config:

	"""Top-level configuration."""

	audio: AudioConfig = dataclasses.field(default_factory=AudioConfig)
	clock: ClockConfig = dataclasses.field(default_factory=ClockConfig)
	melody: MelodyConfig = dataclasses.field(default_factory=MelodyConfig)
	drums: DrumConfig = dataclasses.field(default_factory=DrumConfig)
	modulation: ModulationConfig = dataclasses.field(default_factory=ModulationConfig)
	mix: MixConfig = dataclasses.field(default_factory=MixConfig)
	web: WebConfig = dataclasses.field(default_factory=WebConfig)
	osc: OscConfig = dataclasses.field(default_factory=OscConfig)
	log_level: str = "INFO"
	seed: typing.Optional[int] = None


def _build_section (section_type: typing.Any, name: str, values: typing.Any) -> typing.Any:

	if values is None:
		return section_type()

	if not isinstance(values, dict):
		raise ValueError(f"Config section '{name}' must be a mapping, got {type(values).__name__}")

	known = {field.name for field in dataclasses.fields(section_type)}
	unknown = sorted(set(values) - known)

	if unknown:
		raise ValueError(f"Unknown keys in config section '{name}': {unknown}")

	return section_type(**values)


def config_from_dict (data: typing.Optional[typing.Dict[str, typing.Any]]) -> Config:

	"""Build a :class:`Config` from parsed YAML."""

	if not data:
		return Config()

	if not isinstance(data, dict):
		raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")

	sections = {field.name: field for field in dataclasses.fields(Config)}
	unknown = sorted(set(data) - set(sections))

	if unknown:
		raise ValueError(f"Unknown config sections: {unknown}")

	kwargs: typing.Dict[str, typing.Any] = {}

	for name, value in data.items():

		default = sections[name].default_factory  # type: ignore[misc]

		if default is dataclasses.MISSING:
			kwargs[name] = value
		else:
			kwargs[name] = _build_section(default, name, value)

	return Config(**kwargs)


def load_config (config_path: str = "driftwave.yaml") -> Config:

	"""
	Load configuration from a YAML file.

	A missing file is not an error: defaults are used and a warning logged.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return Config()

	with open(config_path, "r") as f:
		data = yaml.safe_load(f)

	logger.info(f"Loaded config from {config_path}")
	return config_from_dict(data)
