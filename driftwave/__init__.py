"""
driftwave - a generative electronic music engine computed sample by sample.

There are no recordings and no score.  A single clock is divided into trigger
streams; melodic voices turn their triggers into pitches with a replace-loop
(a short loop of remembered notes that slowly mutates and keeps returning to a
home pitch), drums turn theirs into per-instrument hits from a bitmask
pattern table, and everything is synthesized, modulated and mixed on demand.

What's inside:

- **Signals.** ``driftwave.signal`` is a pull-based per-sample graph.
  Nodes advance once per tick however often they are read, and compose with
  ``+ - * /`` and ``.filter()``.
- **Clock and triggers.** ``periodic_trigger()``, ``divide()``, ``split()``
  (round-robin polyphony), ``random_skip()`` and ``to_gate()``.
- **Scales.** ``ScaleQuantizer`` snaps any frequency to the nearest scale
  pitch in any octave; ``random_note()`` builds an in-scale palette.
- **Replace-loop.** ``ReplaceLoop`` keeps a ring of pitches, redraws slots
  with a probability, and starts passes on an anchor pitch with another.
- **Pattern demultiplexer.** ``PatternTriggers`` splits one trigger into one
  trigger per instrument from a table of bitmasks.
- **DSP.** Oscillators, ADSR, biquad and Moog ladder filters, compressor,
  saturator, down-sampler, echo, noise.
- **Front ends.** Live audio (sounddevice), a browser Start/Stop page
  (WebSockets), OSC control, and offline WAV rendering.

Minimal example:

    ```python
    import driftwave

    arrangement = driftwave.Arrangement()
    arrangement.play()
    ```

Package-level exports: ``Arrangement``, ``Config``, ``load_config``,
``ReplaceLoop``, ``PatternTriggers``, ``ScaleQuantizer``.
"""

import driftwave.arrangement
import driftwave.config
import driftwave.pattern
import driftwave.quantizer
import driftwave.replace_loop


Arrangement = driftwave.arrangement.Arrangement
Config = driftwave.config.Config
load_config = driftwave.config.load_config
ReplaceLoop = driftwave.replace_loop.ReplaceLoop
PatternTriggers = driftwave.pattern.PatternTriggers
ScaleQuantizer = driftwave.quantizer.ScaleQuantizer
