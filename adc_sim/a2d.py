from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

import numpy as np

from adc_sim.utils import (
    ANALOG_STEP,
    SIGNAL_KINDS,
    ADCConfig,
    ConfigError,
    idx_to_codewords,
    make_time_axis,
    require_bits,
    require_positive,
)

logger = logging.getLogger(__name__)

IMPULSE_WIDTH = 0.1        # s, centred on duration/2
DETAIL_FREQ_MULT = 8.0     # detail tone of the composite signal, x fundamental
DETAIL_WEIGHT = 0.15


# -------------------------
# Message generation (analog)
# -------------------------

def gen_message(t: np.ndarray, kind: str, A: float, f: float, duration: float) -> np.ndarray:
    t = np.asarray(t, dtype=float)
    A = float(A)
    f = float(f)

    if kind == "sine":
        return A * np.sin(2 * np.pi * f * t)

    if kind == "composite":
        # fundamental + 8x detail tone; the detail is what coarse sampling loses
        main = np.sin(2 * np.pi * f * t)
        detail = np.sin(2 * np.pi * (DETAIL_FREQ_MULT * f) * t)
        return A * ((1.0 - DETAIL_WEIGHT) * main + DETAIL_WEIGHT * detail)

    if kind == "ramp":
        period = 1.0 / f
        phase = np.mod(t, period) / period
        return phase * 2 * A - A

    if kind == "triangle":
        return (2 * A / np.pi) * np.arcsin(np.sin(2 * np.pi * f * t))

    if kind == "square":
        s = np.sin(2 * np.pi * f * t)
        # sign(0) -> +1
        return A * np.where(s >= 0.0, 1.0, -1.0)

    if kind == "impulse":
        center = float(duration) / 2.0
        half = IMPULSE_WIDTH / 2.0
        inside = (t > center - half) & (t < center + half)
        return np.where(inside, A, -A)

    raise ConfigError(f"Unknown signal kind: {kind!r} (expected one of {', '.join(SIGNAL_KINDS)})")


def signal_value(kind: str, t: float, A: float, f: float, duration: float) -> float:
    """Instantaneous analog value of `kind` at time t."""
    return float(gen_message(np.array([t], dtype=float), kind, A, f, duration)[0])


# -------------------------
# Quantizer
# -------------------------

def quantize(x: np.ndarray, n_bits: int, A: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Uniform quantizer over [-A, A] with L=2^n levels that include both endpoints.
    Returns (idx, q): idx in [0..L-1], q = idx/(L-1) * 2A - A.

    Ties (index exactly k + 0.5) round up, so 0 V with an even L maps to the
    first level above zero.
    """
    n_bits = require_bits(n_bits)
    A = require_positive("amplitude", A)
    L = int(2 ** n_bits)
    full_range = 2.0 * A

    x = np.asarray(x, dtype=float)
    normalized = (x + A) / full_range
    idx = np.floor(normalized * (L - 1) + 0.5).astype(int)
    idx = np.clip(idx, 0, L - 1)

    q = idx / float(L - 1) * full_range - A
    return idx, q


def ladder(n_bits: int, A: float) -> np.ndarray:
    """All representable output levels, ascending."""
    n_bits = require_bits(n_bits)
    L = int(2 ** n_bits)
    return np.arange(L, dtype=float) / float(L - 1) * (2.0 * float(A)) - float(A)


# -------------------------
# Sample and hold
# -------------------------

def sample_and_hold(t: np.ndarray, x: np.ndarray, fs: float) -> np.ndarray:
    """
    Tick indices at which a new sample is captured.

    next_sample_time starts at 0 and advances by 1/fs after every capture, so
    a rate above the tick rate degenerates to capturing every tick.
    """
    fs = require_positive("sampling_rate", fs)
    Ts = 1.0 / fs
    t = np.asarray(t, dtype=float)
    if len(t) != len(x):
        raise ValueError("time axis and signal must have the same length")

    tol = ANALOG_STEP * 1e-9
    next_sample_time = 0.0
    captured = []
    for i, ti in enumerate(t.tolist()):
        if ti + tol >= next_sample_time:
            captured.append(i)
            next_sample_time += Ts

    return np.asarray(captured, dtype=int)


def _zoh_expand(n: int, sample_idx: np.ndarray, values: np.ndarray) -> np.ndarray:
    """
    Zero-order hold onto n ticks: tick i takes the value of the last capture at or before i.
    """
    if n == 0:
        return np.zeros(0, dtype=float)
    held = np.searchsorted(sample_idx, np.arange(n), side="right") - 1
    held = np.clip(held, 0, len(values) - 1)
    return values[held]


# -------------------------
# Main simulator
# -------------------------

def simulate_a2d(config: ADCConfig) -> Tuple[np.ndarray, Dict[str, np.ndarray], Dict[str, Any]]:
    """
    Analog m(t) -> sampler (fs) -> quantizer (L=2^n) -> held digital staircase.

    Returns (t, signals, meta) where signals holds "analog", "digital" and
    "error" on the fine tick axis, and meta keeps the captured samples with
    their ladder indices and n-bit code words.
    """
    t = make_time_axis(config.duration, ANALOG_STEP)
    m = gen_message(t, config.kind, config.amplitude, config.frequency, config.duration)

    sample_idx = sample_and_hold(t, m, config.sampling_rate)
    idx, q = quantize(m[sample_idx], config.resolution, config.amplitude)
    digital = _zoh_expand(len(t), sample_idx, q)

    logger.debug(
        "a2d: kind=%s ticks=%d samples=%d L=%d",
        config.kind, len(t), len(sample_idx), config.level_count,
    )

    signals: Dict[str, np.ndarray] = {
        "analog": m,
        "digital": digital,
        "error": m - digital,
    }

    codewords = idx_to_codewords(idx, config.resolution)
    steps = []
    for k in range(len(sample_idx)):
        steps.append({
            "k": k,
            "t_s": float(t[sample_idx[k]]),
            "Analog sample": float(m[sample_idx[k]]),
            "Code number": int(idx[k]),
            "Code word": codewords[k],
            "Quantized q": float(q[k]),
        })

    meta: Dict[str, Any] = {
        "sampler": {
            "fs_samp": float(config.sampling_rate),
            "Ts": 1.0 / float(config.sampling_rate),
            "tick": ANALOG_STEP,
            "num_samples": int(len(sample_idx)),
        },
        "sampled": {"tick_idx": sample_idx, "t_s": t[sample_idx], "m_s": m[sample_idx]},
        "quantizer": {
            "n_bits": int(config.resolution),
            "L": int(config.level_count),
            "ladder_spacing": config.full_range / float(config.level_count - 1),
            "idx": idx,
            "q": q,
            "codewords": codewords,
            "steps": steps,
        },
    }
    return t, signals, meta
