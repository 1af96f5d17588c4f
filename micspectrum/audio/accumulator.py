import logging

import numpy as np

from micspectrum.errors import ConfigurationError
from micspectrum.state import is_power_of_two

log = logging.getLogger(__name__)


def as_mono(chunk):
    """Flatten a block to 1-D float32, or None if it isn't a usable mono chunk."""
    try:
        x = np.asarray(chunk, dtype=np.float32)
    except (TypeError, ValueError):
        return None
    if x.ndim == 2 and x.shape[1] == 1:
        x = x[:, 0]
    if x.ndim != 1 or x.shape[0] == 0:
        return None
    if not np.isfinite(x).all():
        return None
    return x


class SampleAccumulator:
    """
    Consumer side of the capture channel. Collects chunks until `window_size`
    samples are buffered, then cuts one window and advances by `hop_size`
    (hop == window: consumed samples are discarded, hop < window: the last
    window - hop samples are kept as overlap for the next window).
    """

    def __init__(self, window_size, channel=None, hop_size=None):
        if not is_power_of_two(window_size):
            raise ConfigurationError(f"window size must be a power of two, got {window_size}")
        self.window_size = int(window_size)
        self.hop_size = int(window_size if hop_size is None else hop_size)
        if not 1 <= self.hop_size <= self.window_size:
            raise ConfigurationError(f"hop size must be in [1, {self.window_size}], got {hop_size}")
        self.channel = channel
        self._buf = np.zeros(0, dtype=np.float32)
        self.emitted = 0
        self.received = 0
        self.rejected_chunks = 0

    @property
    def pending(self) -> int:
        return int(self._buf.shape[0])

    def push(self, chunk):
        x = as_mono(chunk)
        if x is None:
            self.rejected_chunks += 1
            log.warning("dropping malformed chunk (%s)", type(chunk).__name__)
            return []
        self.received += x.shape[0]
        self._buf = np.concatenate((self._buf, x))

        windows = []
        n = self.window_size
        while self._buf.shape[0] >= n:
            windows.append(self._buf[:n].copy())
            self._buf = self._buf[self.hop_size:]
            self.emitted += 1
        return windows

    def poll(self):
        """Drain whatever the channel holds right now; never waits."""
        if self.channel is None:
            return []
        windows = []
        for chunk in self.channel.drain():
            windows.extend(self.push(chunk))
        return windows
