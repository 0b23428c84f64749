# test_pipeline.py
#
# End-to-end tests for `simulate_adc(config)`, stats and the aliasing advisory.
#
# What this test suite verifies
# -----------------------------
# 1) Reference scenarios
#    - sine, 5 V, 1 Hz, fs=20 Hz, 3 bits, 1 s -> L=8, LSB=1.25 V, Nyquist 10 Hz, digital(0)=+5/7
#    - 1 bit -> digital only ever takes ±A
#
# 2) Output shape invariants (all kinds)
#    - len == floor(duration / tick) + 1, t[0] == 0, t[-1] within one tick of duration
#    - strictly increasing, fixed 1 ms spacing, independent of fs
#    - every digital value lies on the 2^n ladder
#    - reconstructed series present iff reconstruction is enabled
#
# 3) Aliasing advisory
#    - sine: fs = 2f - 0.1 -> True, fs = 2f + 0.1 -> False
#    - non-sine kinds never trigger it; warning is surfaced in meta["warnings"]
#
# 4) Configuration validation
#    - resolution < 1, non-positive amplitude / frequency / fs / duration / multiplier,
#      resolution above 32 bits, non-numeric values, non-bool reconstruction flag,
#      unknown kind, unknown keys -> ConfigError
#
# How to run
# ----------
#   pytest -q adc_sim/tests/test_pipeline.py


from __future__ import annotations

import logging

import numpy as np
import pytest

from adc_sim.a2d import ladder
from adc_sim.pipeline import aliasing_likely, aliasing_message, compute_stats, level_grid_spacing, simulate_adc
from adc_sim.utils import ANALOG_STEP, DEFAULT_CONFIG, MAX_GRID_BITS, MAX_RESOLUTION, SIGNAL_KINDS, ADCConfig, ConfigError, SamplePoint


# -------------------------
# Shared utilities / helpers
# -------------------------

def make_config(**kwargs) -> ADCConfig:
    base = dict(kind="sine", amplitude=5.0, frequency=1.0, sampling_rate=20.0, resolution=3, duration=1.0)
    base.update(kwargs)
    return ADCConfig(**base)


def distinct_levels(x: np.ndarray) -> set:
    return set(np.round(np.asarray(x, dtype=float), 9).tolist())


# =====================================
# 1) Reference scenarios
# =====================================

def test_reference_sine_scenario():
    res = simulate_adc(make_config())
    assert res.stats.level_count == 8
    assert res.stats.step_size == pytest.approx(1.25)
    assert res.stats.nyquist_frequency == pytest.approx(10.0)
    assert res.stats.sampling_interval == pytest.approx(0.05)

    first = next(res.points())
    assert first.time == 0.0
    assert first.analog == pytest.approx(0.0, abs=1e-12)
    assert first.digital == pytest.approx(5.0 / 7.0)
    assert first.error == pytest.approx(-5.0 / 7.0)


@pytest.mark.parametrize("kind", SIGNAL_KINDS)
def test_one_bit_is_pure_bipolar(kind):
    res = simulate_adc(make_config(kind=kind, resolution=1, amplitude=3.0))
    assert res.stats.level_count == 2
    assert distinct_levels(res.signals["digital"]) <= {-3.0, 3.0}


def test_default_config_matches_initial_state():
    cfg = DEFAULT_CONFIG
    assert cfg.kind == "sine"
    assert (cfg.amplitude, cfg.frequency, cfg.sampling_rate) == (5.0, 1.0, 20.0)
    assert (cfg.resolution, cfg.duration) == (3, 2.0)
    assert cfg.reconstruction_enabled is False
    assert cfg.cutoff_multiplier == 0.5


# =====================================
# 2) Output shape invariants
# =====================================

@pytest.mark.parametrize("duration,expected_len", [(0.5, 501), (1.0, 1001), (2.0, 2001), (3.7, 3701), (0.0123, 13)])
def test_length_and_endpoints(duration, expected_len):
    res = simulate_adc(make_config(duration=duration))
    assert len(res) == expected_len
    assert res.t[0] == 0.0
    assert abs(res.t[-1] - duration) < ANALOG_STEP
    assert len(list(res.points())) == expected_len


@pytest.mark.parametrize("fs", [1.0, 7.0, 20.0, 50.0])
def test_tick_spacing_is_independent_of_sampling_rate(fs):
    res = simulate_adc(make_config(sampling_rate=fs))
    dt = np.diff(res.t)
    assert np.all(dt > 0)
    assert np.allclose(dt, ANALOG_STEP)
    assert len(res) == 1001


@pytest.mark.parametrize("kind", SIGNAL_KINDS)
@pytest.mark.parametrize("n_bits", [1, 3, 8])
def test_digital_values_lie_on_ladder(kind, n_bits):
    cfg = make_config(kind=kind, resolution=n_bits, frequency=2.5, sampling_rate=13.0, duration=2.0)
    res = simulate_adc(cfg)
    levels = ladder(n_bits, cfg.amplitude)
    d = res.signals["digital"]
    dist = np.min(np.abs(d[:, None] - levels[None, :]), axis=1)
    assert np.all(dist < 1e-9)
    assert len(distinct_levels(d)) <= cfg.level_count


@pytest.mark.parametrize("kind", SIGNAL_KINDS)
def test_error_bounded_at_sampling_instants(kind):
    cfg = make_config(kind=kind, resolution=4, duration=2.0)
    res = simulate_adc(cfg)
    idx = res.meta["sampled"]["tick_idx"]
    half_spacing = cfg.full_range / (cfg.level_count - 1) / 2.0
    assert np.max(np.abs(res.signals["error"][idx])) <= half_spacing + 1e-9


def test_reconstruction_absent_when_disabled():
    res = simulate_adc(make_config(reconstruction_enabled=False))
    assert "reconstructed" not in res.signals
    assert "reconstruction" not in res.meta
    assert all(p.reconstructed is None for p in res.points())


def test_reconstruction_present_when_enabled():
    res = simulate_adc(make_config(kind="square", reconstruction_enabled=True, cutoff_multiplier=0.5))
    y = res.signals["reconstructed"]
    assert len(y) == len(res)
    assert y[0] == pytest.approx(res.signals["digital"][0])
    pts = list(res.points())
    assert all(isinstance(p, SamplePoint) and p.reconstructed is not None for p in pts)
    assert res.meta["reconstruction"]["cutoff_hz"] == pytest.approx(10.0)


def test_same_config_gives_identical_output():
    cfg = make_config(kind="composite", reconstruction_enabled=True)
    a = simulate_adc(cfg)
    b = simulate_adc(ADCConfig.from_dict(cfg.to_dict()))
    assert hash(cfg) == hash(ADCConfig.from_dict(cfg.to_dict()))
    for key in a.signals:
        assert np.array_equal(a.signals[key], b.signals[key])
    assert a.stats == b.stats


def test_coarse_sampling_loses_composite_detail():
    fine = simulate_adc(make_config(kind="composite", sampling_rate=50.0, resolution=8))
    coarse = simulate_adc(make_config(kind="composite", sampling_rate=4.0, resolution=8))
    assert np.mean(np.abs(coarse.signals["error"])) > np.mean(np.abs(fine.signals["error"]))


# =====================================
# 3) Stats and aliasing advisory
# =====================================

@pytest.mark.parametrize("n_bits", [1, 2, 3, 8, 12])
def test_stats_from_config(n_bits):
    cfg = make_config(resolution=n_bits, amplitude=2.0, sampling_rate=44.0)
    st = compute_stats(cfg)
    assert st.level_count == 2 ** n_bits
    assert st.step_size == pytest.approx(4.0 / 2 ** n_bits)
    assert st.sampling_interval == pytest.approx(1.0 / 44.0)
    assert st.nyquist_frequency == pytest.approx(22.0)


@pytest.mark.parametrize("f", [1.0, 2.5, 10.0])
def test_sine_aliasing_threshold(f):
    assert aliasing_likely(make_config(frequency=f, sampling_rate=2 * f - 0.1)) is True
    assert aliasing_likely(make_config(frequency=f, sampling_rate=2 * f + 0.1)) is False


@pytest.mark.parametrize("kind", [k for k in SIGNAL_KINDS if k != "sine"])
def test_other_kinds_never_trigger_advisory(kind):
    assert aliasing_likely(make_config(kind=kind, frequency=10.0, sampling_rate=1.0)) is False


def test_aliasing_warning_surfaces_in_meta_and_log(caplog):
    cfg = make_config(frequency=10.0, sampling_rate=15.0)
    with caplog.at_level(logging.WARNING, logger="adc_sim.pipeline"):
        res = simulate_adc(cfg)
    assert res.meta["aliasing_likely"] is True
    assert any("Aliasing likely" in w for w in res.meta["warnings"])
    assert "Fs (15 Hz) < 2 * Freq (20 Hz)" in aliasing_message(cfg)
    assert any("Aliasing likely" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("n_bits", [1, 3, MAX_GRID_BITS])
def test_level_grid_follows_ladder_spacing(n_bits):
    cfg = make_config(resolution=n_bits, amplitude=2.0)
    assert level_grid_spacing(cfg) == pytest.approx(4.0 / (2 ** n_bits - 1))


@pytest.mark.parametrize("n_bits", [MAX_GRID_BITS + 1, 12])
def test_level_grid_disabled_for_fine_resolution(n_bits):
    assert level_grid_spacing(make_config(resolution=n_bits)) is None


def test_no_warning_when_sampling_is_adequate():
    res = simulate_adc(make_config(frequency=1.0, sampling_rate=20.0))
    assert res.meta["aliasing_likely"] is False
    assert res.meta["warnings"] == []


# =====================================
# 4) Configuration validation
# =====================================

@pytest.mark.parametrize("field,value", [
    ("resolution", 0),
    ("resolution", -2),
    ("resolution", 2.5),
    ("amplitude", 0.0),
    ("amplitude", -1.0),
    ("frequency", 0.0),
    ("sampling_rate", 0.0),
    ("sampling_rate", -20.0),
    ("duration", 0.0),
    ("cutoff_multiplier", 0.0),
    ("amplitude", float("nan")),
    ("duration", float("inf")),
    ("kind", "sawtooth"),
])
def test_invalid_config_raises(field, value):
    with pytest.raises(ConfigError):
        make_config(**{field: value})


@pytest.mark.parametrize("field,value", [
    ("resolution", 33),
    ("resolution", 64),
    ("resolution", "3"),
    ("frequency", "10"),
    ("sampling_rate", "1"),
    ("amplitude", None),
    ("duration", True),
    ("reconstruction_enabled", "yes"),
    ("reconstruction_enabled", 1),
])
def test_out_of_range_or_non_numeric_config_raises(field, value):
    with pytest.raises(ConfigError, match=field):
        make_config(**{field: value})


def test_from_dict_rejects_numeric_strings():
    with pytest.raises(ConfigError, match="frequency"):
        ADCConfig.from_dict({"kind": "sine", "frequency": "10", "sampling_rate": 1.0})


def test_max_resolution_config_is_accepted():
    cfg = make_config(resolution=MAX_RESOLUTION)
    assert cfg.level_count == 2 ** MAX_RESOLUTION


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigError, match="bogus"):
        ADCConfig.from_dict({"kind": "sine", "bogus": 1})


def test_config_is_immutable():
    cfg = make_config()
    with pytest.raises(Exception):
        cfg.amplitude = 1.0


def test_simulate_rejects_non_config():
    with pytest.raises(TypeError):
        simulate_adc({"kind": "sine"})
