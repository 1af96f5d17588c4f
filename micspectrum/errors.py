# micspectrum/errors.py


class SpectrumError(Exception):
    """Base class for everything the pipeline raises."""


class ConfigurationError(SpectrumError, ValueError):
    """Invalid pipeline parameters (window size, smoothing, hop, ...)."""


class CaptureStartError(SpectrumError):
    """Capture could not be started. Fatal, raised from start() only."""


class NoInputDeviceError(CaptureStartError):
    pass


class UnsupportedFormatError(CaptureStartError):
    def __init__(self, device, tried, last_err=None):
        self.device = device
        self.tried = tuple(tried)
        self.last_err = last_err
        rates = ", ".join(str(r) for r in self.tried)
        msg = f"input device {device!r}: no supported mono float32 format (tried {rates})"
        if last_err is not None:
            msg += f": {last_err}"
        super().__init__(msg)
