"""PCM conversion and level helpers (numpy)."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

FloatArray = npt.NDArray[np.float32]

_INT16_SCALE = 32768.0


def pcm16_to_float(data: bytes) -> FloatArray:
    """Decode little-endian int16 PCM into float32 samples in [-1, 1)."""
    n = len(data) // 2
    if n == 0:
        return np.zeros(0, dtype=np.float32)
    ints = np.frombuffer(data[: n * 2], dtype="<i2")
    return (ints.astype(np.float32) / _INT16_SCALE).astype(np.float32)


def float_to_pcm16(samples: npt.ArrayLike) -> bytes:
    """Encode float samples as int16 PCM, clipping to [-1, 1].

    Negative values scale by 0x8000 and positive values by 0x7FFF so that
    full scale maps onto the int16 range without wrap-around.
    """
    arr = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    scaled = np.where(arr < 0, arr * 0x8000, arr * 0x7FFF)
    return scaled.astype("<i2").tobytes()


def rms(samples: npt.ArrayLike) -> float:
    """Root-mean-square amplitude; 0.0 for an empty block."""
    arr = np.asarray(samples, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(arr * arr)))


def volume_level(level: float, gain: float) -> float:
    """Map an RMS level onto a 0..1 UI meter value."""
    return min(1.0, level * gain)
