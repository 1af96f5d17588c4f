#!/usr/bin/env python3
# Run: python3 -u -m micspectrum.app

import logging
import sys
import time

from micspectrum.audio.engine import SpectrumPipeline
from micspectrum.audio.features import peak_bin
from micspectrum.errors import CaptureStartError, ConfigurationError
from micspectrum.state import SpectrumConfig

STATUS_EVERY_S = 1.0


def setup_logging(level=logging.INFO):
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")


def status_line(snap) -> str:
    n = snap.max_display_bin
    env = snap.envelope[:n] if n > 0 else snap.envelope
    pk = peak_bin(env)
    hz = pk * snap.samplerate / snap.fft_size if pk >= 0 else 0.0
    level = float(env[pk]) if pk >= 0 else 0.0
    tag = "STALE" if snap.stale else "RUN"
    return (f"[{tag}] peak={hz:7.1f}Hz env={level:.4f} windows={snap.windows} "
            f"dropped={snap.dropped_chunks} rejected={snap.rejected_chunks}")


def main() -> int:
    setup_logging()
    try:
        cfg = SpectrumConfig.from_env()
    except ConfigurationError as e:
        print(f"[ERR] config: {e}", file=sys.stderr)
        return 2

    pipeline = SpectrumPipeline(cfg)
    try:
        pipeline.start()
    except CaptureStartError as e:
        print(f"[ERR] capture: {e}", file=sys.stderr)
        return 2

    print(f"[INFO] MIC dev={pipeline.capture.device_name!r} sr={pipeline.samplerate} nfft={cfg.fft_size}")
    print(f"[INFO] SMOOTH={cfg.smoothing} PEAK_HOLD={cfg.peak_hold} HOP={cfg.hop} FPS={cfg.fps}")

    frame_dt = 1.0 / cfg.fps
    last_status = time.perf_counter()
    try:
        while True:
            now = time.perf_counter()
            pipeline.update()
            if now - last_status >= STATUS_EVERY_S:
                print(status_line(pipeline.snapshot()))
                last_status = now
            time.sleep(max(0.0, frame_dt - (time.perf_counter() - now)))
    except KeyboardInterrupt:
        print("\n[STOP] Keyboard interrupt")
    finally:
        pipeline.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
