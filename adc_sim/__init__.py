from adc_sim.a2d import gen_message, quantize, signal_value
from adc_sim.d2a import reconstruct
from adc_sim.pipeline import aliasing_likely, compute_stats, simulate_adc
from adc_sim.utils import (
    DEFAULT_CONFIG,
    SIGNAL_KINDS,
    ADCConfig,
    ADCResult,
    ADCStats,
    ConfigError,
    SamplePoint,
)

__all__ = [
    "DEFAULT_CONFIG",
    "SIGNAL_KINDS",
    "ADCConfig",
    "ADCResult",
    "ADCStats",
    "ConfigError",
    "SamplePoint",
    "aliasing_likely",
    "compute_stats",
    "gen_message",
    "quantize",
    "reconstruct",
    "signal_value",
    "simulate_adc",
]
