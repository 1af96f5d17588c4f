import logging
import threading
from dataclasses import dataclass

import numpy as np

from micspectrum.audio.accumulator import SampleAccumulator
from micspectrum.audio.channel import ChunkChannel
from micspectrum.audio.envelope import EnvelopeFilter
from micspectrum.audio.features import SpectrumEngine
from micspectrum.state import SpectrumConfig

log = logging.getLogger(__name__)

OFFLINE_SAMPLERATE = 44100


def _readonly(a):
    v = a.view()
    v.flags.writeable = False
    return v


@dataclass(frozen=True)
class SpectrumSnapshot:
    raw: np.ndarray
    envelope: np.ndarray
    samplerate: int
    fft_size: int
    max_display_bin: int
    windows: int
    dropped_chunks: int
    rejected_chunks: int
    stale: bool


class SpectrumPipeline:
    """
    capture -> channel -> accumulator -> FFT -> envelope.

    Call update() once per display frame from the consumer thread; read the
    results through `raw` / `envelope` or snapshot(). Without start() the
    pipeline runs offline and samples are pushed with feed().

    An injected `capture` brings its own channel; config.channel_capacity
    only sizes the channel the pipeline creates itself.
    """

    def __init__(self, config=None, capture=None):
        self.config = (config or SpectrumConfig()).validate()
        c = self.config
        if capture is not None:
            self.channel = capture.channel
        else:
            self.channel = ChunkChannel(capacity=c.channel_capacity)
        self.capture = capture
        self.accumulator = SampleAccumulator(c.fft_size, channel=self.channel, hop_size=c.hop)
        self.spectrum = SpectrumEngine(
            nfft=c.fft_size,
            samplerate=c.samplerate or OFFLINE_SAMPLERATE,
            scaling=c.scaling,
        )
        self.envelope_filter = EnvelopeFilter(c.fft_size // 2, smoothing=c.smoothing, peak_hold=c.peak_hold)
        self._raw = np.zeros(c.fft_size // 2, dtype=np.float32)
        self._lock = threading.Lock()
        self._stale_reported = False

    @property
    def samplerate(self) -> int:
        return self.spectrum.sr

    @property
    def max_display_bin(self) -> int:
        return self.spectrum.bins_below(self.config.max_display_freq)

    @property
    def raw(self):
        return _readonly(self._raw)

    @property
    def envelope(self):
        return _readonly(self.envelope_filter.values)

    @property
    def stale(self) -> bool:
        return self.capture is not None and not self.capture.active

    def start(self):
        """Open the input stream. NoInputDeviceError / UnsupportedFormatError propagate."""
        c = self.config
        if self.capture is None:
            # sounddevice needs the PortAudio shared library; offline use doesn't
            from micspectrum.audio.capture import CaptureSource

            self.capture = CaptureSource(
                channel=self.channel,
                samplerate=c.samplerate,
                blocksize=c.blocksize,
                device=c.input_device,
            )
        self.capture.start()
        if self.capture.samplerate and self.capture.samplerate != self.spectrum.sr:
            self.spectrum = SpectrumEngine(nfft=c.fft_size, samplerate=self.capture.samplerate, scaling=c.scaling)
        self._stale_reported = False
        return self

    def _process(self, windows):
        if not windows:
            return 0
        with self._lock:
            for w in windows:
                raw = self.spectrum.compute(w)
                self._raw[:] = raw
                self.envelope_filter.update(raw)
        return len(windows)

    def update(self) -> int:
        """One consumer cycle. Returns how many windows were transformed."""
        if self.stale and not self._stale_reported:
            log.warning("capture stream stopped; serving last spectrum")
            self._stale_reported = True
        return self._process(self.accumulator.poll())

    def feed(self, samples) -> int:
        return self._process(self.accumulator.push(samples))

    def snapshot(self) -> SpectrumSnapshot:
        with self._lock:
            raw = _readonly(self._raw.copy())
            env = _readonly(self.envelope_filter.values.copy())
        return SpectrumSnapshot(
            raw=raw,
            envelope=env,
            samplerate=self.samplerate,
            fft_size=self.config.fft_size,
            max_display_bin=self.max_display_bin,
            windows=self.accumulator.emitted,
            dropped_chunks=self.channel.dropped,
            rejected_chunks=self.accumulator.rejected_chunks,
            stale=self.stale,
        )

    def close(self):
        if self.capture is not None:
            self.capture.close()

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc):
        self.close()
