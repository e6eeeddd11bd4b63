import logging

import driftwave

logging.basicConfig(level=logging.INFO)

# The default piece: one replace-loop voice on every second clock tick and a
# cymbal/snare/kick pattern on every third, at a 10 Hz master clock.
arrangement = driftwave.Arrangement()

arrangement.play()
