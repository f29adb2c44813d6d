"""Linear interpolation resampler."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from panelkit.voice.pcm import FloatArray


class LinearResampler:
    """Resample mono float audio by linear interpolation.

    Output length is ``floor(len(input) * target_rate / source_rate)``. Output
    sample ``i`` reads the source at position ``i * source_rate / target_rate``
    and interpolates between its two neighbours; the last source sample is
    held when the right neighbour is past the end.
    """

    def __init__(self, source_rate: int, target_rate: int) -> None:
        if source_rate <= 0 or target_rate <= 0:
            raise ValueError("sample rates must be positive")
        self._source_rate = source_rate
        self._target_rate = target_rate

    @property
    def name(self) -> str:
        return "linear"

    @property
    def source_rate(self) -> int:
        return self._source_rate

    @property
    def target_rate(self) -> int:
        return self._target_rate

    def resample(self, samples: npt.ArrayLike) -> FloatArray:
        data = np.asarray(samples, dtype=np.float32)
        if self._source_rate == self._target_rate or data.size == 0:
            return data

        ratio = self._source_rate / self._target_rate
        new_len = int(data.size / ratio)
        if new_len == 0:
            return np.zeros(0, dtype=np.float32)

        positions = np.arange(new_len, dtype=np.float64) * ratio
        idx = positions.astype(np.int64)
        frac = (positions - idx).astype(np.float32)
        v0 = data[idx]
        # Hold the last sample when the right neighbour is out of range
        v1 = data[np.minimum(idx + 1, data.size - 1)]
        return (v0 + (v1 - v0) * frac).astype(np.float32)
