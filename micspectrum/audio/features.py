import numpy as np

from micspectrum.errors import ConfigurationError
from micspectrum.state import SCALINGS, is_power_of_two


def hanning(n):
    # same coefficients as np.hanning: 0.5 * (1 - cos(2*pi*k / (n - 1)))
    k = np.arange(n, dtype=np.float64)
    return (0.5 * (1.0 - np.cos(2.0 * np.pi * k / (n - 1)))).astype(np.float32)


class SpectrumEngine:
    """
    Hanning window + real FFT magnitude. compute() maps one window of
    `nfft` samples to `nfft // 2` bins, bin i ~ i * samplerate / nfft Hz.

    scaling="sqrt_n" divides magnitudes by sqrt(nfft), "none" leaves the raw
    FFT magnitude.
    """

    def __init__(self, nfft=2048, samplerate=44100, scaling="sqrt_n"):
        if not is_power_of_two(nfft):
            raise ConfigurationError(f"nfft must be a power of two >= 2, got {nfft}")
        if scaling not in SCALINGS:
            raise ConfigurationError(f"scaling must be one of {SCALINGS}, got {scaling!r}")
        self.nfft = int(nfft)
        self.sr = int(samplerate)
        self.scaling = scaling
        self.bins = self.nfft // 2
        self.window = hanning(self.nfft)
        self._scale = 1.0 / np.sqrt(self.nfft) if scaling == "sqrt_n" else 1.0

    def compute(self, x):
        x = np.asarray(x, dtype=np.float32)
        if x.ndim != 1 or x.shape[0] != self.nfft:
            raise ConfigurationError(f"window length {np.shape(x)} != nfft {self.nfft}")
        spec = np.fft.rfft(x * self.window)
        mag = np.abs(spec[: self.bins]) * self._scale
        return mag.astype(np.float32)

    def bin_frequency(self, i):
        return float(i) * self.sr / self.nfft

    def frequencies(self):
        return np.arange(self.bins, dtype=np.float32) * (self.sr / self.nfft)

    def bins_below(self, freq_hz):
        """How many bins lie below freq_hz, clamped to [0, bins]."""
        bin_width = self.sr / self.nfft
        return max(0, min(self.bins, int(freq_hz / bin_width)))


def peak_bin(spectrum):
    spectrum = np.asarray(spectrum)
    if spectrum.size == 0:
        return -1
    return int(np.argmax(spectrum))
