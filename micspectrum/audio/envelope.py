import numpy as np

from micspectrum.errors import ConfigurationError


class EnvelopeFilter:
    """
    First-order EMA per bin: env = a * env + (1 - a) * raw.

    With peak_hold the blended value is floored at the new raw value, so
    peaks show up instantly and decay at rate `a`.
    """

    def __init__(self, bins, smoothing=0.95, peak_hold=False):
        if int(bins) < 1:
            raise ConfigurationError(f"bins must be >= 1, got {bins}")
        if not 0.0 < float(smoothing) < 1.0:
            raise ConfigurationError(f"smoothing must be in (0, 1), got {smoothing}")
        self.smoothing = float(smoothing)
        self.peak_hold = bool(peak_hold)
        self.values = np.zeros(int(bins), dtype=np.float32)
        self.updates = 0

    def update(self, raw):
        raw = np.asarray(raw, dtype=np.float32)
        if raw.shape != self.values.shape:
            raise ConfigurationError(f"spectrum shape {raw.shape} != envelope shape {self.values.shape}")
        a = self.smoothing
        self.values *= a
        self.values += (1.0 - a) * raw
        if self.peak_hold:
            np.maximum(self.values, raw, out=self.values)
        self.updates += 1
        return self.values
