from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Iterator, Mapping, Optional

import numpy as np


# "continuous" trace resolution (s), independent of the sampling rate
ANALOG_STEP = 1e-3

SIGNAL_KINDS = ("sine", "composite", "ramp", "triangle", "square", "impulse")

SIGNAL_LABELS = {
    "sine": "Sine",
    "composite": "Sine + detail (high freq.)",
    "ramp": "Ramp",
    "triangle": "Triangle",
    "square": "Square",
    "impulse": "Impulse",
}


class ConfigError(ValueError):
    """Invalid conversion parameters."""


# past 52 bits the ladder is finer than float64 can resolve around ±A
MAX_RESOLUTION = 32

# per-level grid lines are only drawn up to this many bits (2^6 = 64 lines)
MAX_GRID_BITS = 6


def _is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def require_positive(name: str, value: float) -> float:
    if not _is_real(value):
        raise ConfigError(f"{name} must be a real number (got {value!r})")
    v = float(value)
    if not math.isfinite(v) or v <= 0:
        raise ConfigError(f"{name} must be a finite number > 0 (got {value!r})")
    return v


def require_kind(kind: str) -> str:
    if kind not in SIGNAL_KINDS:
        raise ConfigError(f"Unknown signal kind: {kind!r} (expected one of {', '.join(SIGNAL_KINDS)})")
    return kind


def require_bits(n_bits: Any) -> int:
    if not _is_real(n_bits) or not math.isfinite(n_bits) or int(n_bits) != n_bits:
        raise ConfigError(f"resolution must be an integer number of bits (got {n_bits!r})")
    n = int(n_bits)
    if n < 1:
        raise ConfigError(f"resolution must be >= 1 bit (got {n})")
    if n > MAX_RESOLUTION:
        raise ConfigError(f"resolution must be <= {MAX_RESOLUTION} bits (got {n})")
    return n


@dataclass(frozen=True)
class ADCConfig:
    kind: str = "sine"
    amplitude: float = 5.0              # V (peak)
    frequency: float = 1.0              # Hz (periodic kinds)
    sampling_rate: float = 20.0         # Hz
    resolution: int = 3                 # bits
    duration: float = 2.0               # s
    reconstruction_enabled: bool = False
    cutoff_multiplier: float = 0.5      # cutoff = multiplier * sampling_rate

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        require_kind(self.kind)
        require_positive("amplitude", self.amplitude)
        require_positive("frequency", self.frequency)
        require_positive("sampling_rate", self.sampling_rate)
        require_positive("duration", self.duration)
        require_positive("cutoff_multiplier", self.cutoff_multiplier)
        require_bits(self.resolution)
        if not isinstance(self.reconstruction_enabled, (bool, np.bool_)):
            raise ConfigError(f"reconstruction_enabled must be a bool (got {self.reconstruction_enabled!r})")

    @property
    def level_count(self) -> int:
        return int(2 ** int(self.resolution))

    @property
    def full_range(self) -> float:
        return 2.0 * float(self.amplitude)

    @property
    def step_size(self) -> float:
        return self.full_range / float(self.level_count)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ADCConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_CONFIG = ADCConfig()


@dataclass(frozen=True)
class ADCStats:
    step_size: float          # LSB (V)
    level_count: int
    sampling_interval: float  # s
    nyquist_frequency: float  # Hz


@dataclass(frozen=True)
class SamplePoint:
    time: float
    analog: float
    digital: float
    reconstructed: Optional[float] = None

    @property
    def error(self) -> float:
        return self.analog - self.digital


@dataclass
class ADCResult:
    t: np.ndarray
    signals: Dict[str, np.ndarray]     # named series aligned with t
    stats: ADCStats
    config: ADCConfig
    meta: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return int(len(self.t))

    def points(self) -> Iterator[SamplePoint]:
        analog = self.signals["analog"]
        digital = self.signals["digital"]
        recon = self.signals.get("reconstructed")
        for i in range(len(self.t)):
            yield SamplePoint(
                time=float(self.t[i]),
                analog=float(analog[i]),
                digital=float(digital[i]),
                reconstructed=None if recon is None else float(recon[i]),
            )


def make_time_axis(duration: float, step: float = ANALOG_STEP) -> np.ndarray:
    # 0..duration inclusive; the epsilon keeps e.g. 1.0/0.001 from landing on 999
    n = int(math.floor(float(duration) / float(step) + 1e-9))
    return np.arange(n + 1, dtype=float) * float(step)


def idx_to_codewords(idx: np.ndarray, n_bits: int) -> list[str]:
    return [format(int(k), f"0{int(n_bits)}b") for k in np.asarray(idx).tolist()]
