import logging

import driftwave.pattern
import driftwave.player
import driftwave.quantizer
import driftwave.replace_loop
import driftwave.scales
import driftwave.session
import driftwave.triggers
import driftwave.voices

logging.basicConfig(level=logging.INFO)

SAMPLE_RATE = 44100

# Build a graph by hand from the low-level pieces and render ten seconds of it.

clock = driftwave.triggers.periodic_trigger(8.0)

# Melody: an eight-step loop in A minor pentatonic that mutates slowly.
scale = driftwave.scales.scale_base_frequencies("A", "minor_pentatonic")

freq = driftwave.replace_loop.ReplaceLoop(
	trigger = clock,
	anchor = driftwave.scales.note_frequency("A", 2),
	palette = driftwave.quantizer.random_note(scale, 100.0, 300.0),
	length = 8,
	replace_probability = 0.15,
	anchor_probability = 0.6,
)

melody = driftwave.voices.synth_voice(freq, driftwave.triggers.to_gate(clock, 0.05))

# Drums: Euclidean kick, snare and cymbal on twice the melodic rate.
drum_clock = driftwave.triggers.periodic_trigger(16.0)
table = driftwave.pattern.euclidean_table(16, [11, 3, 4])
cymbal, snare, kick = driftwave.pattern.PatternTriggers(drum_clock, table, channels=3).triggers

drums = driftwave.voices.cymbal(cymbal) + driftwave.voices.snare(snare) + driftwave.voices.kick(kick)

out = (melody * 0.5 + drums) * 0.2

session = driftwave.session.Session(out, SAMPLE_RATE)
driftwave.player.render_to_file(session, "custom_graph.wav", seconds=10.0)
