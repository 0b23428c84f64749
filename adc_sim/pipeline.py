from __future__ import annotations

import logging
from typing import List, Optional

from adc_sim.a2d import simulate_a2d
from adc_sim.d2a import reconstruct
from adc_sim.utils import MAX_GRID_BITS, ADCConfig, ADCResult, ADCStats

logger = logging.getLogger(__name__)


def compute_stats(config: ADCConfig) -> ADCStats:
    fs = float(config.sampling_rate)
    return ADCStats(
        step_size=config.step_size,
        level_count=config.level_count,
        sampling_interval=1.0 / fs,
        nyquist_frequency=fs / 2.0,
    )


def aliasing_likely(config: ADCConfig) -> bool:
    # Advisory covers the sine kind only.
    return config.kind == "sine" and float(config.sampling_rate) < 2.0 * float(config.frequency)


def level_grid_spacing(config: ADCConfig) -> Optional[float]:
    """Spacing of the per-level chart grid, or None when there are too many levels to draw."""
    if int(config.resolution) > MAX_GRID_BITS:
        return None
    return config.full_range / float(config.level_count - 1)


def aliasing_message(config: ADCConfig) -> str:
    if aliasing_likely(config):
        return f"Fs ({config.sampling_rate:g} Hz) < 2 * Freq ({2 * config.frequency:g} Hz)"
    return "Fs >= 2 * signal frequency"


def simulate_adc(config: ADCConfig) -> ADCResult:
    """
    Full conversion for one configuration:

      m(t) -> sample & hold -> quantizer -> [RC reconstruction] -> stats

    Every call recomputes from t=0; nothing is shared between calls.
    """
    if not isinstance(config, ADCConfig):
        raise TypeError(f"expected ADCConfig, got {type(config).__name__}")

    t, signals, meta = simulate_a2d(config)

    if config.reconstruction_enabled:
        y, rec_meta = reconstruct(signals["digital"], config.sampling_rate, config.cutoff_multiplier)
        signals["reconstructed"] = y
        meta["reconstruction"] = rec_meta

    warnings: List[str] = []
    if aliasing_likely(config):
        msg = f"Aliasing likely: {aliasing_message(config)}"
        logger.warning(msg)
        warnings.append(msg)

    meta["aliasing_likely"] = aliasing_likely(config)
    meta["warnings"] = warnings

    return ADCResult(
        t=t,
        signals=signals,
        stats=compute_stats(config),
        config=config,
        meta=meta,
    )
