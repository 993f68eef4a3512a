#!/usr/bin/env python3
"""
Intensity Evaluation Profiling Script

Compares the per-point baseline loop against the batched evaluator and
breaks down where the baseline spends its time.

Usage:
    python3 benchmarks/profile_intensity.py                   # 5000 points
    python3 benchmarks/profile_intensity.py --points 20000    # More points
    python3 benchmarks/profile_intensity.py --step-size 2000  # Larger batches
    python3 benchmarks/profile_intensity.py --threads 8       # Field model threads
    python3 benchmarks/profile_intensity.py --cprofile        # Full cProfile output
"""

import argparse
import cProfile
import io
import pstats
import time
from contextlib import contextmanager
from dataclasses import dataclass

import numpy as np

from strata_field import BatchConfig, LensCorrection, LinearArray, NodeSet, evaluate


@dataclass
class StageTiming:
    """Accumulated time for one stage of the per-point loop."""
    name: str
    total_time: float = 0.0
    calls: int = 0


class StageProfiler:
    """Times each stage of the per-point loop and reports cost per point."""

    def __init__(self):
        self.stages: dict[str, StageTiming] = {}

    @contextmanager
    def stage(self, name: str):
        start = time.perf_counter()
        yield
        timing = self.stages.setdefault(name, StageTiming(name))
        timing.total_time += time.perf_counter() - start
        timing.calls += 1

    def report(self, title: str, num_points: int) -> str:
        """Per-stage share of the loop and its cost amortized over every point."""
        if not self.stages:
            return "No timing data collected"

        total = sum(s.total_time for s in self.stages.values())
        lines = [
            "=" * 70,
            title,
            "=" * 70,
            f"{'Stage':<32} {'Total (ms)':>10} {'%':>7} {'Calls':>8} {'μs/point':>10}",
            "-" * 70,
        ]
        for s in sorted(self.stages.values(), key=lambda s: s.total_time, reverse=True):
            lines.append(
                f"{s.name:<32} {s.total_time * 1e3:>10.2f} {s.total_time / total * 100:>6.1f}% "
                f"{s.calls:>8} {s.total_time / num_points * 1e6:>10.2f}"
            )
        lines.extend([
            "-" * 70,
            f"{'TOTAL':<32} {total * 1e3:>10.2f} {'':>7} {'':>8} {total / num_points * 1e6:>10.2f}",
            "=" * 70,
        ])
        return "\n".join(lines)


def make_nodes(num_points: int, seed: int = 0) -> NodeSet:
    """Random nodes in a 10 x 10 x 30 mm block in front of the array."""
    rng = np.random.default_rng(seed)
    coords = rng.uniform([-5e-3, -5e-3, 5e-3], [5e-3, 5e-3, 35e-3], size=(num_points, 3))
    return NodeSet(node_ids=np.arange(1, num_points + 1), coords=coords)


def profile_baseline(
    field: LinearArray, nodes: NodeSet, correction: LensCorrection
) -> tuple[list[float], StageProfiler]:
    """Per-point loop: progress-list lookup, per-point offset, one call per point."""
    profiler = StageProfiler()
    num_nodes = len(nodes)
    progress_points = set(np.round(np.linspace(0, num_nodes, 11)).astype(int).tolist())
    intensity: list[float] = []

    for i in range(num_nodes):
        with profiler.stage("progress_membership_test"):
            report = i in progress_points

        if report:
            with profiler.stage("progress_format"):
                _ = f"{i / num_nodes * 100:.1f} %"

        with profiler.stage("lens_correction_per_point"):
            point = correction.apply(nodes.coords[i:i + 1])

        with profiler.stage("field_call_per_point"):
            pressure = field.calc_pressure(point)

        with profiler.stage("intensity_append"):
            intensity.append(float(np.sum(pressure * pressure)))

    return intensity, profiler


def run_cprofile(field, nodes, correction, config) -> str:
    """Run cProfile on the batched evaluator."""
    profiler = cProfile.Profile()

    profiler.enable()
    evaluate(nodes, correction, config, field, progress=lambda event: None)
    profiler.disable()

    stream = io.StringIO()
    stats = pstats.Stats(profiler, stream=stream)
    stats.sort_stats('cumulative')
    stats.print_stats(30)

    return stream.getvalue()


def main():
    parser = argparse.ArgumentParser(description="Profile intensity evaluation")
    parser.add_argument("--points", type=int, default=5000, help="Number of sample points")
    parser.add_argument("--step-size", type=int, default=1000, help="Points per batch")
    parser.add_argument("--threads", type=int, default=1, help="Field model threads")
    parser.add_argument("--elements", type=int, default=32, help="Array elements")
    parser.add_argument("--cprofile", action="store_true", help="Run cProfile on the batched path")
    parser.add_argument("--skip-baseline", action="store_true", help="Only time the batched path")
    args = parser.parse_args()

    field = LinearArray(num_elements=args.elements, focus=(0.0, 0.0, 0.02))
    nodes = make_nodes(args.points)
    correction = LensCorrection.along_z(-1e-3)
    config = BatchConfig(step_size=args.step_size, threads=args.threads)

    print(f"\n{'='*70}")
    print(f"INTENSITY PROFILING - {args.points:,} points, {args.elements} elements")
    print(f"{'='*70}")
    print(f"  Samples per waveform: {field.num_samples}")
    print(f"  Batches: {config.num_batches(args.points)} × {args.step_size}")
    print(f"  Threads: {args.threads}")

    baseline_time = None
    baseline = None
    if not args.skip_baseline:
        print("\nRunning per-point baseline...")
        start = time.perf_counter()
        baseline, profiler = profile_baseline(field, nodes, correction)
        baseline_time = time.perf_counter() - start
        print("\n" + profiler.report("BASELINE PER-POINT LOOP BREAKDOWN", args.points))

    print("\nRunning batched evaluator...")
    result = evaluate(nodes, correction, config, field, progress=lambda event: None)
    print(f"  Runtime: {result.runtime:.3f} s ({result.num_batches} field calls)")
    print(f"  Cost: {result.runtime / args.points * 1e6:.2f} μs/point")

    if baseline is not None:
        max_err = float(np.max(np.abs(np.asarray(baseline) - result.intensity)))
        scale = float(np.max(result.intensity)) or 1.0
        print(f"\nBaseline runtime: {baseline_time:.3f} s ({args.points} field calls)")
        print(f"Speedup: {baseline_time / result.runtime:.1f}x")
        print(f"Max relative difference: {max_err / scale:.2e}")

    if args.cprofile:
        print("\n" + "="*70)
        print("cProfile Results (batched)")
        print("="*70)
        print(run_cprofile(field, nodes, correction, config))


if __name__ == "__main__":
    main()
