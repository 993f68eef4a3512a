"""
Example: Focused Linear Array Intensity
=======================================
Field script for ``field-compute``. Builds a 64-element 5 MHz linear
array focused 20 mm deep and shifts every node 1 mm toward the array to
account for the lens focal offset.

Usage:
    field-compute examples/focused_array.py nodes.dyn --scale 0.01 --threads 8

The node file is an LS-DYNA *NODE deck in centimetres (hence --scale 0.01).
"""

from strata_field import LensCorrection, LinearArray

field = LinearArray(
    num_elements=64,
    pitch=0.3e-3,
    center_frequency=5e6,
    fractional_bandwidth=0.6,
    focus=(0.0, 0.0, 0.02),
    attenuation=0.5,
    apodization="hann",
)

correction = LensCorrection.along_z(-1e-3)

# Points per field call; larger batches mean fewer calls but more memory
step_size = 5000
threads = 4
