"""
Amplitude telemetry buffer with adaptive auto-scale.

Each raw sample is compressed (s^0.7), boosted, and pushed into a ring buffer
whose length equals the display width in pixels. max_scale expands at once
on a new peak and decays after scale_update_interval quiet samples when the
recent window has fallen well below it.
"""

from __future__ import annotations
from dataclasses import dataclass
import numpy as np

from patchview.config import TelemetryConfig

COMPRESSION_EXPONENT = 0.7
PEAK_HEADROOM = 1.1
DECAY_THRESHOLD = 0.7
DECAY_HEADROOM = 1.3


@dataclass(frozen=True)
class TelemetryStats:
    current: float
    max: float
    average: float
    max_scale: float


class AmplitudeTelemetryBuffer:
    """
    Fixed-width FIFO of processed amplitude samples.

    Storage is a numpy ring buffer, so push() is O(1); history() returns the
    samples oldest-first.
    """

    def __init__(self, config: TelemetryConfig = None):
        self.config = config or TelemetryConfig()
        self.gain_boost = self.config.gain_boost
        self.scale_update_interval = self.config.scale_update_interval
        self.min_scale = self.config.min_scale
        self._allocate(self.config.width)

    def _allocate(self, width: int):
        self._data = np.zeros(width, dtype=np.float64)
        self._head = 0  # index of the oldest sample
        self.max_scale = self.min_scale
        self._idle_count = 0

    # -------------------------------------------------------------------------
    # Samples
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return self._data.shape[0]

    @property
    def width(self) -> int:
        return self._data.shape[0]

    @property
    def idle_count(self) -> int:
        return self._idle_count

    def process(self, sample: float) -> float:
        """Perceptual compression plus gain boost."""
        return float(max(sample, 0.0) ** COMPRESSION_EXPONENT * self.gain_boost)

    def push(self, sample: float) -> float:
        """Add one raw sample, update the scale, return the processed value."""
        processed = self.process(sample)

        self._data[self._head] = processed
        self._head = (self._head + 1) % self._data.shape[0]

        if processed > self.max_scale:
            self.max_scale = processed * PEAK_HEADROOM
        else:
            self._idle_count += 1
            if self._idle_count >= self.scale_update_interval:
                window_max = self.recent_max(self.scale_update_interval)
                if window_max < self.max_scale * DECAY_THRESHOLD:
                    self.max_scale = max(self.min_scale, window_max * DECAY_HEADROOM)
                self._idle_count = 0

        self.max_scale = max(self.min_scale, self.max_scale)
        return processed

    def history(self) -> np.ndarray:
        """Copy of the samples, oldest first."""
        return np.roll(self._data, -self._head)

    def latest(self) -> float:
        return float(self._data[self._head - 1])

    def recent_max(self, count: int) -> float:
        count = min(count, self._data.shape[0])
        idx = (self._head - 1 - np.arange(count)) % self._data.shape[0]
        return float(self._data[idx].max())

    def normalized(self) -> np.ndarray:
        """History scaled into [0, 1] by max_scale."""
        return np.minimum(1.0, self.history() / self.max_scale)

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def reset(self):
        self._data.fill(0.0)
        self._head = 0
        self.max_scale = self.min_scale
        self._idle_count = 0

    def resize(self, width: int):
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        self._allocate(width)

    def stats(self) -> TelemetryStats:
        return TelemetryStats(
            current=self.latest(),
            max=float(self._data.max()),
            average=float(self._data.mean()),
            max_scale=self.max_scale,
        )
