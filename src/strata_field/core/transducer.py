"""Linear-array pressure field model.

A lightweight spatial-impulse model of a focused linear array, used as the
pressure-field primitive for intensity evaluation. Each element is treated
as a point radiator on the x axis; the transmitted pulse from element e
reaches a field point r after

    t_e(r) = |r - r_e| / c + tau_e

where tau_e is the transmit focusing delay. The pressure waveform at r is

    p(r, t) = sum_e  w_e * A(|r - r_e|) * s(t - t_e(r)) / (4 pi |r - r_e|)

with apodization weights w_e, attenuation A(d) = 10^(-alpha f0 d / 20)
(alpha in dB/cm/MHz), and excitation pulse s(t).

Each waveform is sampled on a time axis local to the point's first
arrival, so every point in a batch returns the same number of samples.

Threading:
    ``calc_pressure`` splits a batch into chunks and evaluates them on a
    thread pool with ``num_threads`` workers. NumPy releases the GIL in the
    array kernels, so chunks run concurrently. Each chunk writes a disjoint
    slice of the output array.

Example:
    >>> from strata_field import LinearArray
    >>> field = LinearArray(num_elements=32, center_frequency=5e6, focus=(0, 0, 0.02))
    >>> field.set_num_threads(8)
    >>> waveforms = field.calc_pressure(points)  # (N, num_samples)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import signal

# Points per worker task inside one calc_pressure call
CHUNK_SIZE = 512

# Envelope level (dB) at which the excitation pulse is truncated
PULSE_CUTOFF_DB = -60.0


@dataclass
class ExcitationPulse:
    """Gaussian-modulated sinusoidal excitation.

    Args:
        center_frequency: Center frequency in Hz
        fractional_bandwidth: -6 dB bandwidth as a fraction of center
            frequency (default: 0.5)
        amplitude: Peak amplitude (default: 1.0)
    """

    center_frequency: float
    fractional_bandwidth: float = 0.5
    amplitude: float = 1.0

    _half_duration: float = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.center_frequency <= 0:
            raise ValueError("center_frequency must be positive")
        if self.fractional_bandwidth <= 0:
            raise ValueError("fractional_bandwidth must be positive")
        self._half_duration = float(signal.gausspulse(
            "cutoff", fc=self.center_frequency, bw=self.fractional_bandwidth,
            tpr=PULSE_CUTOFF_DB,
        ))

    @property
    def duration(self) -> float:
        """Full pulse length in seconds between the cutoff points."""
        return 2.0 * self._half_duration

    def waveform(self, t: NDArray[np.floating]) -> NDArray[np.floating]:
        """Pulse value at times ``t`` (seconds), centred on t = duration / 2."""
        shifted = np.asarray(t) - self._half_duration
        out = signal.gausspulse(
            shifted, fc=self.center_frequency, bw=self.fractional_bandwidth
        )
        return self.amplitude * out


@dataclass
class LinearArray:
    """Focused linear transducer array.

    Args:
        num_elements: Number of elements (default: 32)
        pitch: Element spacing in meters (default: 0.3 mm)
        center_frequency: Excitation center frequency in Hz (default: 5 MHz)
        fractional_bandwidth: Excitation fractional bandwidth (default: 0.5)
        focus: Transmit focus (x, y, z) in meters (default: 20 mm on axis)
        c: Speed of sound in m/s (default: 1540, soft tissue)
        sample_rate: Waveform sample rate in Hz (default: 100 MHz)
        attenuation: Attenuation in dB/cm/MHz (default: 0.5)
        apodization: "rect" (uniform) or "hann"
        num_threads: Worker threads used by calc_pressure (default: 1)

    Attributes:
        element_positions: (num_elements, 3) element centres
        focus_delays: (num_elements,) transmit delays in seconds, >= 0
        num_samples: Length of each returned waveform
    """

    num_elements: int = 32
    pitch: float = 0.3e-3
    center_frequency: float = 5e6
    fractional_bandwidth: float = 0.5
    focus: tuple[float, float, float] = (0.0, 0.0, 0.02)
    c: float = 1540.0
    sample_rate: float = 100e6
    attenuation: float = 0.5
    apodization: Literal["rect", "hann"] = "rect"
    num_threads: int = 1

    pulse: ExcitationPulse = field(init=False, repr=False, compare=False)
    element_positions: NDArray[np.float64] = field(init=False, repr=False, compare=False)
    focus_delays: NDArray[np.float64] = field(init=False, repr=False, compare=False)
    weights: NDArray[np.float64] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.num_elements < 1:
            raise ValueError("num_elements must be >= 1")
        if self.pitch <= 0:
            raise ValueError("pitch must be positive")
        if self.c <= 0:
            raise ValueError("c must be positive")
        if self.sample_rate <= 2 * self.center_frequency:
            raise ValueError(
                f"sample_rate {self.sample_rate:.3g} Hz does not resolve "
                f"center_frequency {self.center_frequency:.3g} Hz"
            )
        if self.attenuation < 0:
            raise ValueError("attenuation must be >= 0")
        if self.apodization not in ("rect", "hann"):
            raise ValueError(f"Unknown apodization '{self.apodization}'")
        self.set_num_threads(self.num_threads)

        self.pulse = ExcitationPulse(self.center_frequency, self.fractional_bandwidth)

        x = (np.arange(self.num_elements) - (self.num_elements - 1) / 2.0) * self.pitch
        self.element_positions = np.column_stack(
            [x, np.zeros_like(x), np.zeros_like(x)]
        )

        # Outer elements fire first so all wavefronts meet at the focus
        dist = np.linalg.norm(self.element_positions - np.asarray(self.focus), axis=1)
        self.focus_delays = (dist.max() - dist) / self.c

        if self.apodization == "hann" and self.num_elements > 2:
            self.weights = np.hanning(self.num_elements + 2)[1:-1]
        else:
            self.weights = np.ones(self.num_elements)

    @property
    def num_samples(self) -> int:
        """Samples per waveform: pulse length plus maximum arrival spread."""
        aperture = self.pitch * (self.num_elements - 1)
        spread = aperture / self.c + float(self.focus_delays.max())
        return int(np.ceil((self.pulse.duration + spread) * self.sample_rate)) + 1

    def set_num_threads(self, num_threads: int) -> None:
        if num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {num_threads}")
        self.num_threads = int(num_threads)

    def calc_pressure(self, points: ArrayLike) -> NDArray[np.float64]:
        """Pressure waveforms at the given points.

        Args:
            points: Field points, shape (N, 3), in meters

        Returns:
            Array of shape (N, num_samples)
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 3:
            raise ValueError(f"Expected points of shape (N, 3), got {pts.shape}")

        out = np.zeros((len(pts), self.num_samples), dtype=np.float64)
        chunks = [
            (start, min(start + CHUNK_SIZE, len(pts)))
            for start in range(0, len(pts), CHUNK_SIZE)
        ]

        if self.num_threads == 1 or len(chunks) <= 1:
            for start, stop in chunks:
                out[start:stop] = self._pressure_chunk(pts[start:stop])
            return out

        def run(bounds: tuple[int, int]) -> None:
            start, stop = bounds
            out[start:stop] = self._pressure_chunk(pts[start:stop])

        with ThreadPoolExecutor(max_workers=self.num_threads) as executor:
            # list() re-raises the first worker exception
            list(executor.map(run, chunks))

        return out

    def _pressure_chunk(self, pts: NDArray[np.float64]) -> NDArray[np.float64]:
        # (k, E) distances from every point to every element
        diff = pts[:, None, :] - self.element_positions[None, :, :]
        dist = np.linalg.norm(diff, axis=2)
        dist = np.maximum(dist, 0.5 / self.sample_rate * self.c)

        arrival = dist / self.c + self.focus_delays[None, :]
        first = arrival.min(axis=1, keepdims=True)
        relative = arrival - first

        alpha = self.attenuation * (self.center_frequency / 1e6) * 100.0  # dB/m
        gain = self.weights[None, :] * 10.0 ** (-alpha * dist / 20.0) / (4.0 * np.pi * dist)

        t = np.arange(self.num_samples) / self.sample_rate
        result = np.zeros((len(pts), self.num_samples), dtype=np.float64)
        for e in range(self.num_elements):
            result += gain[:, e, None] * self.pulse.waveform(t[None, :] - relative[:, e, None])
        return result

    def describe(self) -> dict:
        """Model parameters for result metadata."""
        return {
            "model": "LinearArray",
            "num_elements": self.num_elements,
            "pitch": self.pitch,
            "center_frequency": self.center_frequency,
            "fractional_bandwidth": self.fractional_bandwidth,
            "focus": list(self.focus),
            "c": self.c,
            "sample_rate": self.sample_rate,
            "attenuation": self.attenuation,
            "apodization": self.apodization,
            "num_samples": self.num_samples,
        }
