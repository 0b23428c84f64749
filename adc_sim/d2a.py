from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

import numpy as np
from scipy.signal import lfilter

from adc_sim.utils import ANALOG_STEP, require_positive

logger = logging.getLogger(__name__)


# -----------------------------
# Helpers
# -----------------------------
def rc_alpha(cutoff_hz: float, dt: float = ANALOG_STEP) -> float:
    """
    Smoothing factor of a discretized RC low-pass:
      tau = 1 / (2π f_c),  alpha = dt / (tau + dt)

    A non-positive cutoff is the limit tau -> inf, i.e. alpha = 0 (output never moves).
    """
    dt = require_positive("dt", dt)
    cutoff_hz = float(cutoff_hz)
    if cutoff_hz <= 0:
        return 0.0
    tau = 1.0 / (2 * np.pi * cutoff_hz)
    return dt / (tau + dt)


def rc_lowpass(x: np.ndarray, alpha: float) -> np.ndarray:
    """
    Single-pole IIR (exponential moving average) started at rest on x[0]:
      y[0] = x[0]
      y[i] = y[i-1] + alpha * (x[i] - y[i-1])
    """
    x = np.asarray(x, dtype=float)
    if x.size == 0:
        return x
    alpha = float(alpha)
    if not 0.0 <= alpha <= 1.0:
        raise ValueError(f"alpha must be in [0, 1] (got {alpha})")

    b = [alpha]
    a = [1.0, -(1.0 - alpha)]
    # initial state so that y[0] = alpha*x[0] + (1-alpha)*x[0] = x[0]
    zi = np.array([(1.0 - alpha) * x[0]])
    y, _ = lfilter(b, a, x, zi=zi)
    return y


# -----------------------------
# DAC output stage
# -----------------------------
def reconstruct(digital: np.ndarray, fs_samp: float, cutoff_multiplier: float,
                *, dt: float = ANALOG_STEP) -> Tuple[np.ndarray, Dict[str, Any]]:
    """
    Hold + low-pass reconstruction of a held digital staircase.
    Cutoff is expressed relative to the sampling rate (0.5 -> Nyquist).
    """
    fs_samp = require_positive("sampling_rate", fs_samp)
    fc = fs_samp * float(cutoff_multiplier)
    alpha = rc_alpha(fc, dt)

    y = rc_lowpass(digital, alpha)

    logger.debug("d2a: fc=%.6g Hz alpha=%.6g n=%d", fc, alpha, len(y))

    meta = {
        "cutoff_hz": float(fc),
        "cutoff_multiplier": float(cutoff_multiplier),
        "tau": float(1.0 / (2 * np.pi * fc)) if fc > 0 else float("inf"),
        "alpha": float(alpha),
    }
    return y, meta
