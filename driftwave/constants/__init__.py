"""Engine defaults.

- ``DEFAULT_SAMPLE_RATE``: samples per second of the output stream.
- ``DEFAULT_BLOCK_SIZE``: frames rendered per audio callback.  Play/pause
  changes take effect on these block boundaries.
- ``DEFAULT_CLOCK_HZ``: rate of the master trigger that every voice divides.
"""

DEFAULT_SAMPLE_RATE = 44100
DEFAULT_BLOCK_SIZE = 1024
DEFAULT_CLOCK_HZ = 10.0
DEFAULT_GAIN = 0.2
