"""
Example: On-Axis Intensity Profile
==================================
Evaluates intensity along the beam axis of a focused linear array and
reports the -6 dB depth of field.

Learning objectives:
- Building sample points from coordinates
- Batched evaluation with a progress callback
- Converting intensity to dB relative to the peak
"""

import numpy as np

from strata_field import (
    BatchConfig,
    LensCorrection,
    LinearArray,
    NodeSet,
    evaluate,
    focal_region,
    intensity_to_db,
)

depths = np.linspace(5e-3, 40e-3, 351)
coords = np.column_stack([np.zeros_like(depths), np.zeros_like(depths), depths])
nodes = NodeSet(node_ids=np.arange(1, len(depths) + 1), coords=coords)

field = LinearArray(num_elements=48, center_frequency=5e6, focus=(0.0, 0.0, 0.02))
config = BatchConfig(step_size=50, threads=2)

result = evaluate(
    nodes,
    LensCorrection(),
    config,
    field,
    progress=lambda event: print(f"  {event}"),
)

levels = intensity_to_db(result.intensity)
in_focus = focal_region(result.intensity, threshold_db=-6.0)
peak_id, _ = result.peak()

print(f"Peak intensity at z = {depths[peak_id - 1] * 1e3:.1f} mm")
print(
    f"-6 dB depth of field: {depths[in_focus].min() * 1e3:.1f}"
    f" to {depths[in_focus].max() * 1e3:.1f} mm"
)
print(f"Level at 5 mm: {levels[0]:.1f} dB")
