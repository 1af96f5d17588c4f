import logging
import threading

import sounddevice as sd

from micspectrum.audio.channel import ChunkChannel
from micspectrum.errors import NoInputDeviceError, UnsupportedFormatError

log = logging.getLogger(__name__)

FALLBACK_RATES = (48000, 44100, 32000, 16000, 8000)


class CaptureSource:
    """
    Owns the sounddevice InputStream. The PortAudio callback only copies the
    first channel of each block into the channel; everything else happens on
    the consumer side.
    """

    def __init__(self, channel=None, samplerate=None, blocksize=0, device=None):
        self.channel = channel if channel is not None else ChunkChannel()
        self.requested_samplerate = samplerate
        self.samplerate = None
        self.blocksize = int(blocksize)
        self.device = device
        self.device_name = None
        self.stream = None
        self.status_errors = 0
        self._finished = threading.Event()

    @staticmethod
    def default_input():
        try:
            info = sd.query_devices(kind="input")
        except (sd.PortAudioError, ValueError) as e:
            raise NoInputDeviceError(f"no default input device: {e}") from e
        if not info or int(info.get("max_input_channels", 0)) <= 0:
            raise NoInputDeviceError("no default input device")
        return info

    def _resolve_device(self):
        if self.device is None:
            return self.default_input()
        try:
            info = sd.query_devices(self.device, kind="input")
        except (sd.PortAudioError, ValueError) as e:
            raise NoInputDeviceError(f"input device {self.device!r} not found: {e}") from e
        if int(info.get("max_input_channels", 0)) <= 0:
            raise NoInputDeviceError(f"device {self.device!r} has no input channels")
        return info

    def _candidate_rates(self, info):
        rates = []
        for sr in (self.requested_samplerate, info.get("default_samplerate")) + FALLBACK_RATES:
            if sr is None:
                continue
            sr = int(sr)
            if sr > 0 and sr not in rates:
                rates.append(sr)
        return rates

    def _negotiate(self, info):
        rates = self._candidate_rates(info)
        last_err = None
        for sr in rates:
            try:
                sd.check_input_settings(device=self.device, channels=1, dtype="float32", samplerate=sr)
                return sr
            except (sd.PortAudioError, ValueError) as e:
                last_err = e
        raise UnsupportedFormatError(info.get("name", self.device), rates, last_err)

    def _callback(self, indata, frames, time, status):
        if status:
            self.status_errors += 1
        self.channel.put_nowait(indata[:, 0].copy())

    def _on_finished(self):
        self._finished.set()

    def start(self):
        if self.stream is not None:
            return self
        info = self._resolve_device()
        sr = self._negotiate(info)
        self._finished.clear()
        try:
            self.stream = sd.InputStream(
                samplerate=sr,
                blocksize=self.blocksize,
                channels=1,
                device=self.device,
                dtype="float32",
                callback=self._callback,
                finished_callback=self._on_finished,
            )
            self.stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self.stream = None
            raise UnsupportedFormatError(info.get("name", self.device), [sr], e) from e
        self.samplerate = sr
        self.device_name = info.get("name")
        log.info("capture started: device=%r sr=%d block=%d", self.device_name, sr, self.blocksize)
        return self

    @property
    def active(self) -> bool:
        return self.stream is not None and not self._finished.is_set()

    def close(self):
        if self.stream is None:
            return
        stream, self.stream = self.stream, None
        try:
            stream.stop()
        finally:
            stream.close()
        log.info("capture closed")

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc):
        self.close()
