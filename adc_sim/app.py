from __future__ import annotations

import logging

import streamlit as st
import plotly.graph_objects as go

from adc_sim.pipeline import aliasing_likely, aliasing_message, level_grid_spacing, simulate_adc
from adc_sim.utils import DEFAULT_CONFIG, MAX_GRID_BITS, SIGNAL_KINDS, SIGNAL_LABELS, ADCConfig, ConfigError

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(layout="wide")

st.markdown(
    """
    <style>
    [data-testid="InputInstructions"] {
        display: none !important;
    }
    </style>
    """,
    unsafe_allow_html=True,
)


@st.cache_data(show_spinner=False)
def run_simulation(config: ADCConfig):
    # ADCConfig is frozen and hashable, so it is the cache key
    return simulate_adc(config)


def plot_conversion(res, show_analog=True, show_digital=True, show_error=False, grid=False):
    fig = go.Figure()
    t = res.t
    if show_error:
        fig.add_trace(go.Scatter(
            x=t, y=res.signals["error"], mode="lines", name="Quantization error",
            fill="tozeroy", line=dict(width=0), opacity=0.4,
        ))
    if show_analog:
        fig.add_trace(go.Scatter(x=t, y=res.signals["analog"], mode="lines", name="Analog input"))
    if show_digital:
        fig.add_trace(go.Scatter(x=t, y=res.signals["digital"], mode="lines", line_shape="hv", name="Digital (ADC)"))
    if "reconstructed" in res.signals:
        fig.add_trace(go.Scatter(x=t, y=res.signals["reconstructed"], mode="lines", name="DAC output"))

    A = res.config.amplitude
    fig.update_layout(title="Conversion", xaxis_title="Time (s)", yaxis_title="Voltage (V)")
    fig.update_yaxes(range=[-1.2 * A, 1.2 * A])
    if grid:
        fig.update_xaxes(showgrid=True)
        spacing = level_grid_spacing(res.config)
        if spacing is None:
            fig.update_yaxes(showgrid=True)
        else:
            fig.update_yaxes(showgrid=True, tickmode="linear", tick0=-A, dtick=spacing)
    return fig


st.title("ADC / DAC Simulator — Interactive Analog-to-Digital Conversion")

with st.sidebar:
    st.header("Controls")

    kind = st.selectbox(
        "Signal",
        list(SIGNAL_KINDS),
        index=SIGNAL_KINDS.index(DEFAULT_CONFIG.kind),
        format_func=lambda k: SIGNAL_LABELS[k],
    )
    amplitude = st.slider("Amplitude (V)", 0.5, 10.0, float(DEFAULT_CONFIG.amplitude), step=0.5)
    frequency = st.slider("Signal frequency (Hz)", 1.0, 10.0, float(DEFAULT_CONFIG.frequency), step=0.5,
                          disabled=(kind == "impulse"))
    duration = st.slider("Duration (s)", 0.5, 5.0, float(DEFAULT_CONFIG.duration), step=0.5)

    st.divider()
    st.subheader("Sampling & quantization")
    sampling_rate = st.slider("Sampling rate Fs (Hz)", 1, 50, int(DEFAULT_CONFIG.sampling_rate), step=1)
    resolution = st.slider("Resolution (bits)", 1, 12, int(DEFAULT_CONFIG.resolution), step=1)

    st.divider()
    st.subheader("DAC reconstruction")
    reconstruction_enabled = st.toggle("Reconstruction filter", value=DEFAULT_CONFIG.reconstruction_enabled)
    cutoff_multiplier = st.slider(
        "Cutoff (× Fs)", 0.1, 2.0, float(DEFAULT_CONFIG.cutoff_multiplier), step=0.1,
        disabled=not reconstruction_enabled,
    )
    if reconstruction_enabled:
        st.text_input(
            "Cutoff frequency\nfc = multiplier × Fs  (Hz)",
            value=f"{cutoff_multiplier * sampling_rate:.6g}",
            disabled=True,
        )

    st.divider()
    st.subheader("View")
    show_analog = st.checkbox("Analog input", value=True)
    show_digital = st.checkbox("Digital (ADC)", value=True)
    show_error = st.checkbox("Quantization error", value=False)
    show_grid = st.checkbox(
        "Grid on quantization levels", value=False,
        help=f"Per-level lines are drawn up to {MAX_GRID_BITS} bits",
    )

try:
    config = ADCConfig(
        kind=kind,
        amplitude=float(amplitude),
        frequency=float(frequency),
        sampling_rate=float(sampling_rate),
        resolution=int(resolution),
        duration=float(duration),
        reconstruction_enabled=bool(reconstruction_enabled),
        cutoff_multiplier=float(cutoff_multiplier),
    )
except ConfigError as e:
    st.error(str(e))
    st.stop()

res = run_simulation(config)
stats = res.stats

c1, c2, c3 = st.columns(3)
c1.metric("LSB voltage (step)", f"{stats.step_size:.3f} V", help="Smallest voltage resolution")
c2.metric("Discrete levels", f"{stats.level_count}", help=f"2^{config.resolution} possible states")
with c3:
    st.caption("Nyquist status")
    if aliasing_likely(config):
        st.error(f"Aliasing detected: {aliasing_message(config)}")
    else:
        st.success(f"Adequate sampling: {aliasing_message(config)}")

tab1, tab2, tab3 = st.tabs(["Waveforms", "Steps", "Details"])

with tab1:
    st.plotly_chart(
        plot_conversion(res, show_analog, show_digital, show_error, grid=show_grid),
        width="stretch",
    )
    msg = "Full conversion: analog input → ADC digitization → DAC reconstruction (if enabled)."
    if config.reconstruction_enabled:
        msg += " The DAC trace shows how the reconstruction filter smooths the staircase."
    st.info(msg)

with tab2:
    st.dataframe(res.meta["quantizer"]["steps"], width="stretch")

with tab3:
    st.json({
        "config": config.to_dict(),
        "stats": {
            "step_size": stats.step_size,
            "level_count": stats.level_count,
            "sampling_interval": stats.sampling_interval,
            "nyquist_frequency": stats.nyquist_frequency,
        },
        "sampler": res.meta["sampler"],
        "reconstruction": res.meta.get("reconstruction", {}),
        "warnings": res.meta["warnings"],
    })
