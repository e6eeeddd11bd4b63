"""Drum pattern tables.

Each table is a list of bitmasks, one per step, for use with
:class:`driftwave.pattern.PatternTriggers`.  Channel assignments::

	CYMBAL = 0  (bit 0)
	SNARE  = 1  (bit 1)
	KICK   = 2  (bit 2)

``PATTERNS`` maps names to tables; ``CHANNEL_INSTRUMENTS`` lists the
instrument played by each channel, in channel order.
"""

import typing


CYMBAL = 0
SNARE = 1
KICK = 2

CHANNEL_INSTRUMENTS: typing.List[str] = ["cymbal", "snare", "kick"]

_C = 1 << CYMBAL
_S = 1 << SNARE
_K = 1 << KICK

# Sixteen steps: straight cymbals, kick on the quarters, a snare answer that
# doubles up at the end of each half.
DRIFT: typing.List[int] = [
	_C | _K, _C,      _C | _S, _C,
	_C | _K, _C,      _C | _S, _C | _S,
	_C | _K, _C,      _C | _S, _C,
	_C | _K, _C | _K, _C | _S, _C | _S,
]

FOUR_ON_THE_FLOOR: typing.List[int] = [
	_C | _K, _C, _C | _S, _C,
	_C | _K, _C, _C | _S, _C,
]

BREAK: typing.List[int] = [
	_K, 0,  _C, 0,
	_S, 0,  _C, _K,
	0,  _K, _C, 0,
	_S, 0,  _C, _C,
]

PATTERNS: typing.Dict[str, typing.List[int]] = {
	"drift": DRIFT,
	"four_on_the_floor": FOUR_ON_THE_FLOOR,
	"break": BREAK,
}


def get_pattern (name: str) -> typing.List[int]:

	"""Return a copy of a named table."""

	if name not in PATTERNS:
		raise ValueError(f"Unknown drum pattern {name!r}. Available: {sorted(PATTERNS)}")

	return list(PATTERNS[name])
