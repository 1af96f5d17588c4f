"""Shared fixtures for the micspectrum test suite."""

import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: mark test as slow running")


def make_sine(freq, samplerate, n, amplitude=1.0, phase=0.0):
    t = np.arange(n, dtype=np.float64) / samplerate
    return (amplitude * np.sin(2.0 * np.pi * freq * t + phase)).astype(np.float32)


@pytest.fixture
def sine():
    return make_sine
