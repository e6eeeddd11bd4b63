"""Note names, frequencies and scales.

Frequencies use equal temperament with A4 = 440 Hz and scientific octave
numbering, so C4 is middle C and octave 0 starts at C0 (about 16.35 Hz).

Module-level helpers:
- ``note_frequency(name, octave)``: frequency of a named note.
- ``scale_pitch_classes(key, mode)``: pitch classes (0-11) of a key and mode.
- ``scale_base_frequencies(key, mode)``: one octave-zero frequency per degree,
  the input that :class:`driftwave.quantizer.ScaleQuantizer` expects.
- ``register_scale(name, intervals)``: add a custom mode.
"""

import typing


A4_HZ = 440.0
A4_MIDI = 69

NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
}

SCALE_INTERVALS: typing.Dict[str, typing.List[int]] = {
	"ionian": [0, 2, 4, 5, 7, 9, 11],
	"major": [0, 2, 4, 5, 7, 9, 11],
	"dorian": [0, 2, 3, 5, 7, 9, 10],
	"phrygian": [0, 1, 3, 5, 7, 8, 10],
	"lydian": [0, 2, 4, 6, 7, 9, 11],
	"mixolydian": [0, 2, 4, 5, 7, 9, 10],
	"aeolian": [0, 2, 3, 5, 7, 8, 10],
	"minor": [0, 2, 3, 5, 7, 8, 10],
	"locrian": [0, 1, 3, 5, 6, 8, 10],
	"harmonic_minor": [0, 2, 3, 5, 7, 8, 11],
	"melodic_minor": [0, 2, 3, 5, 7, 9, 11],
	"major_pentatonic": [0, 2, 4, 7, 9],
	"minor_pentatonic": [0, 3, 5, 7, 10],
	"blues": [0, 3, 5, 6, 7, 10],
	"whole_tone": [0, 2, 4, 6, 8, 10],
	"chromatic": [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
}


def key_name_to_pc (key_name: str) -> int:

	"""Validate a note name and return its pitch class (0-11).

	Raises:
		ValueError: If the name is not recognised.
	"""

	if key_name not in NOTE_NAME_TO_PC:
		raise ValueError(
			f"Unknown note name: {key_name!r}. Expected e.g. 'C', 'F#', 'Bb'."
		)

	return NOTE_NAME_TO_PC[key_name]


def midi_to_frequency (midi_note: float) -> float:
	return A4_HZ * 2.0 ** ((midi_note - A4_MIDI) / 12.0)


def note_frequency (name: str, octave: int) -> float:

	"""
	Return the frequency of a named note.

	Example:
		```python
		note_frequency("A", 4)  # -> 440.0
		note_frequency("A", 1)  # -> 55.0
		```
	"""

	midi_note = 12 * (octave + 1) + key_name_to_pc(name)
	return midi_to_frequency(midi_note)


def register_scale (name: str, intervals: typing.Sequence[int]) -> None:

	"""
	Register a custom mode for use by name.

	Parameters:
		name: Mode name (e.g. ``"hirajoshi"``).
		intervals: Semitone offsets from the root, each 0-11, no duplicates.
	"""

	if not intervals:
		raise ValueError("A scale needs at least one interval")

	if len(set(intervals)) != len(intervals):
		raise ValueError(f"Scale {name!r} has duplicate intervals: {list(intervals)}")

	for interval in intervals:
		if not 0 <= interval < 12:
			raise ValueError(f"Interval {interval} in scale {name!r} is outside 0-11")

	SCALE_INTERVALS[name] = sorted(intervals)


def scale_pitch_classes (key: str, mode: str = "ionian") -> typing.List[int]:

	"""Return the pitch classes of a key and mode, starting from the root."""

	if mode not in SCALE_INTERVALS:
		raise ValueError(f"Unknown mode '{mode}'. Available: {sorted(SCALE_INTERVALS)}")

	key_pc = key_name_to_pc(key)
	return [(key_pc + i) % 12 for i in SCALE_INTERVALS[mode]]


def scale_base_frequencies (key: str = "C", mode: str = "ionian") -> typing.List[float]:

	"""
	Return one octave-zero frequency per scale degree, ascending.

	Example:
		```python
		# C major: C0, D0, E0, F0, G0, A0, B0
		scale_base_frequencies("C", "ionian")
		```
	"""

	return sorted(midi_to_frequency(12 + pc) for pc in scale_pitch_classes(key, mode))
