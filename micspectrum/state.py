import os
from dataclasses import dataclass, replace
from typing import Optional

from micspectrum.errors import ConfigurationError

SCALINGS = ("sqrt_n", "none")


def is_power_of_two(n) -> bool:
    n = int(n)
    return n >= 2 and (n & (n - 1)) == 0


def _env(name, cast, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name}={raw!r}: {e}") from e


def _env_bool(raw: str) -> bool:
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    raise ValueError("expected a boolean")


def _env_device(raw: str):
    # index if numeric, otherwise a name substring for sounddevice
    try:
        return int(raw)
    except ValueError:
        return raw


@dataclass(frozen=True)
class SpectrumConfig:
    fft_size: int = 2048              # N, power of two
    smoothing: float = 0.95           # envelope alpha, 0 < a < 1
    peak_hold: bool = False           # env = max(ema, raw)
    hop_size: Optional[int] = None    # None = fft_size (no overlap)
    scaling: str = "sqrt_n"           # "sqrt_n" | "none"

    samplerate: Optional[int] = None  # None = device default
    blocksize: int = 0                # 0 = let PortAudio pick
    input_device: object = None       # sounddevice index/name, None = default
    channel_capacity: int = 64        # queued chunks before drop-oldest

    max_display_freq: float = 6000.0
    fps: float = 30.0

    @property
    def hop(self) -> int:
        return int(self.fft_size if self.hop_size is None else self.hop_size)

    def validate(self) -> "SpectrumConfig":
        if not is_power_of_two(self.fft_size):
            raise ConfigurationError(f"fft_size must be a power of two >= 2, got {self.fft_size}")
        if not 0.0 < float(self.smoothing) < 1.0:
            raise ConfigurationError(f"smoothing must be in (0, 1), got {self.smoothing}")
        if not 1 <= self.hop <= self.fft_size:
            raise ConfigurationError(f"hop_size must be in [1, {self.fft_size}], got {self.hop_size}")
        if self.scaling not in SCALINGS:
            raise ConfigurationError(f"scaling must be one of {SCALINGS}, got {self.scaling!r}")
        if self.samplerate is not None and int(self.samplerate) <= 0:
            raise ConfigurationError(f"samplerate must be positive, got {self.samplerate}")
        if int(self.blocksize) < 0:
            raise ConfigurationError(f"blocksize must be >= 0, got {self.blocksize}")
        if int(self.channel_capacity) < 1:
            raise ConfigurationError(f"channel_capacity must be >= 1, got {self.channel_capacity}")
        if float(self.max_display_freq) <= 0.0:
            raise ConfigurationError(f"max_display_freq must be positive, got {self.max_display_freq}")
        if float(self.fps) <= 0.0:
            raise ConfigurationError(f"fps must be positive, got {self.fps}")
        return self

    def update(self, **kwargs) -> "SpectrumConfig":
        return replace(self, **kwargs).validate()

    @classmethod
    def from_env(cls, **overrides) -> "SpectrumConfig":
        d = cls()
        cfg = cls(
            fft_size=_env("MIC_FFT_SIZE", int, d.fft_size),
            smoothing=_env("MIC_SMOOTH", float, d.smoothing),
            peak_hold=_env("MIC_PEAK_HOLD", _env_bool, d.peak_hold),
            hop_size=_env("MIC_HOP", int, d.hop_size),
            scaling=_env("MIC_SCALING", str, d.scaling),
            samplerate=_env("AUDIO_SR", int, d.samplerate),
            blocksize=_env("AUDIO_BLOCK", int, d.blocksize),
            input_device=_env("AUDIO_DEV", _env_device, d.input_device),
            channel_capacity=_env("MIC_QUEUE", int, d.channel_capacity),
            max_display_freq=_env("MIC_MAX_FREQ", float, d.max_display_freq),
            fps=_env("FPS", float, d.fps),
        )
        if overrides:
            cfg = replace(cfg, **overrides)
        return cfg.validate()
