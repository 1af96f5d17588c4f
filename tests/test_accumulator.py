"""Tests for SampleAccumulator window assembly."""

import numpy as np
import pytest

from micspectrum.audio.accumulator import SampleAccumulator, as_mono
from micspectrum.audio.channel import ChunkChannel
from micspectrum.errors import ConfigurationError


def test_no_window_before_n_samples():
    acc = SampleAccumulator(8)
    assert acc.push(np.arange(7, dtype=np.float32)) == []
    assert acc.pending == 7
    assert acc.emitted == 0


def test_exactly_one_window_at_n_samples():
    acc = SampleAccumulator(8)
    acc.push(np.arange(5, dtype=np.float32))
    windows = acc.push(np.arange(5, 8, dtype=np.float32))
    assert len(windows) == 1
    np.testing.assert_array_equal(windows[0], np.arange(8, dtype=np.float32))
    assert acc.pending == 0


@pytest.mark.parametrize("chunk", [1, 3, 7, 64, 100, 1000])
def test_one_window_per_n_samples(chunk):
    n = 64
    acc = SampleAccumulator(n)
    data = np.arange(n * 10 + 13, dtype=np.float32)
    windows = []
    for i in range(0, data.shape[0], chunk):
        windows.extend(acc.push(data[i:i + chunk]))
        assert acc.pending < n
    assert len(windows) == 10
    assert acc.emitted == 10
    assert all(w.shape == (n,) for w in windows)
    np.testing.assert_array_equal(np.concatenate(windows), data[: n * 10])
    assert acc.pending == 13


def test_large_chunk_yields_several_windows_in_order():
    acc = SampleAccumulator(4)
    windows = acc.push(np.arange(10, dtype=np.float32))
    assert [w.tolist() for w in windows] == [[0, 1, 2, 3], [4, 5, 6, 7]]
    assert acc.pending == 2


def test_hop_keeps_overlap_tail():
    acc = SampleAccumulator(8, hop_size=4)
    windows = acc.push(np.arange(16, dtype=np.float32))
    assert [w[0] for w in windows] == [0, 4, 8]
    assert acc.pending == 4


def test_windows_are_independent_copies():
    acc = SampleAccumulator(4)
    (w,) = acc.push(np.arange(4, dtype=np.float32))
    w[:] = -1
    (w2,) = acc.push(np.arange(4, 8, dtype=np.float32))
    np.testing.assert_array_equal(w2, [4, 5, 6, 7])


def test_malformed_chunks_are_counted_not_raised():
    acc = SampleAccumulator(4)
    assert acc.push(np.zeros((3, 2), dtype=np.float32)) == []
    assert acc.push(np.array([1.0, np.nan], dtype=np.float32)) == []
    assert acc.push(np.zeros(0, dtype=np.float32)) == []
    assert acc.rejected_chunks == 3
    assert acc.pending == 0


def test_column_vector_chunk_is_accepted():
    acc = SampleAccumulator(4)
    windows = acc.push(np.arange(4, dtype=np.float32).reshape(4, 1))
    assert len(windows) == 1


def test_poll_drains_channel_in_order():
    ch = ChunkChannel(capacity=16)
    acc = SampleAccumulator(4, channel=ch)
    for i in range(3):
        ch.put_nowait(np.arange(i * 3, i * 3 + 3, dtype=np.float32))
    windows = acc.poll()
    assert [w.tolist() for w in windows] == [[0, 1, 2, 3], [4, 5, 6, 7]]
    assert ch.qsize() == 0
    assert acc.poll() == []


def test_poll_without_channel():
    assert SampleAccumulator(4).poll() == []


@pytest.mark.parametrize("n,hop", [(6, None), (8, 0), (8, 9)])
def test_bad_sizes(n, hop):
    with pytest.raises(ConfigurationError):
        SampleAccumulator(n, hop_size=hop)


def test_as_mono():
    assert as_mono([1.0, 2.0]).dtype == np.float32
    assert as_mono(np.ones((2, 2))) is None
    assert as_mono([np.inf]) is None


@pytest.mark.parametrize("chunk", [[[1.0, 2.0], [3.0]], "abc", object(), None])
def test_unconvertible_chunks_are_rejected(chunk):
    acc = SampleAccumulator(4)
    assert acc.push(chunk) == []
    assert acc.rejected_chunks == 1
    assert acc.push(np.arange(4, dtype=np.float32))[0].tolist() == [0, 1, 2, 3]
