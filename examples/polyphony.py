import logging

import driftwave
import driftwave.config

logging.basicConfig(level=logging.INFO)

# Three replace-loop voices take turns on the same trigger, so each one
# sounds on every third firing and their loops never collide.  Longer loops
# with more replacement drift further before repeating.
config = driftwave.config.Config()

config.clock.rate_hz = 12.0
config.melody.voices = 3
config.melody.division = 1
config.melody.length = 12
config.melody.replace_probability = 0.25
config.melody.anchor_probability = 0.3
config.melody.mode = "dorian"
config.melody.key = "D"
config.melody.anchor_note = "D"
config.melody.palette_base_hz = 110.0
config.melody.palette_range_hz = 330.0
config.drums.pattern = "break"
config.drums.division = 2

arrangement = driftwave.Arrangement(config)

# Open http://localhost:8080 and press Start.
arrangement.web_ui()
arrangement.play(autostart=False)
