import numpy as np

from micspectrum.audio.engine import SpectrumPipeline
from micspectrum.audio.features import peak_bin
from micspectrum.state import SpectrumConfig

SR = 44100
FREQ = 440.0
NFFT = 2048
CHUNK = 512

cfg = SpectrumConfig(fft_size=NFFT, samplerate=SR)
pipe = SpectrumPipeline(cfg)

t = np.arange(NFFT * 60) / SR
x = np.sin(2 * np.pi * FREQ * t).astype(np.float32)

for i in range(0, x.shape[0], CHUNK):
    pipe.channel.put_nowait(x[i:i + CHUNK])
    pipe.update()

snap = pipe.snapshot()
pk = peak_bin(snap.raw)
print(f"windows={snap.windows} peak_bin={pk} ({pk * SR / NFFT:.1f}Hz) "
      f"raw={snap.raw[pk]:.3f} env={snap.envelope[pk]:.3f} expected_bin={round(FREQ * NFFT / SR)}")
