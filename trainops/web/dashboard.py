from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

import dash
import dash_bootstrap_components as dbc
import plotly.graph_objs as go
from dash import Dash, Input, Output, ctx, dcc, html

from ..config import INTERVAL_CHOICES_MS, SMOOTH_WINDOW_CHOICES, AppConfig, load_config
from ..core.buffers import Sample
from ..core.events import LogEntry
from ..core.pipeline import LR_SERIES, PipelineSnapshot
from ..core.session import SessionView, SimulationSession

# ───────────────────────────── cyberpunk styling ──────────────────────────────
CYBERPUNK_COLORS = {
    'bg_dark': '#0a0a0f',
    'bg_medium': '#1a1a2e',
    'bg_light': '#16213e',
    'neon_pink': '#ff006e',
    'neon_cyan': '#00d4ff',
    'neon_purple': '#9d4edd',
    'neon_green': '#00ff88',
    'neon_yellow': '#ffbe0b',
    'text_primary': '#ffffff',
    'text_secondary': '#b8b8b8',
}

LEVEL_COLORS = {
    "info": CYBERPUNK_COLORS['neon_cyan'],
    "warn": CYBERPUNK_COLORS['neon_yellow'],
    "error": CYBERPUNK_COLORS['neon_pink'],
}

PANEL_STYLE = {
    "background": f"linear-gradient(135deg, {CYBERPUNK_COLORS['bg_medium']} 0%, {CYBERPUNK_COLORS['bg_light']} 100%)",
    "padding": "20px",
    "borderRadius": "15px",
    "border": f"2px solid {CYBERPUNK_COLORS['neon_purple']}",
    "marginBottom": "20px",
}

# (metric key, number format) for the KPI row
KPI_CARDS = [
    ("loss", "{:.3f}"),
    ("accuracy", "{:.1f}"),
    ("tokens_per_sec", "{:.0f}"),
    ("latency_ms", "{:.0f}"),
]

# Sparklines follow the smoothed series, except latency which shows raw
RAW_SPARKLINES = {"latency_ms"}


def format_kpi(sample: Optional[Sample], fmt: str) -> str:
    return fmt.format(sample.value) if sample is not None else "-"


def time_labels(samples: Sequence[Sample]) -> List[str]:
    return [datetime.fromtimestamp(s.timestamp).strftime("%H:%M:%S") for s in samples]


def _themed(fig: go.Figure, title: str = "", height: int = 260) -> go.Figure:
    fig.update_layout(
        title=dict(text=title, font=dict(color=CYBERPUNK_COLORS['text_primary'])),
        plot_bgcolor=CYBERPUNK_COLORS['bg_medium'],
        paper_bgcolor=CYBERPUNK_COLORS['bg_medium'],
        font=dict(color=CYBERPUNK_COLORS['text_primary']),
        xaxis=dict(gridcolor=CYBERPUNK_COLORS['bg_light']),
        yaxis=dict(gridcolor=CYBERPUNK_COLORS['bg_light']),
        legend=dict(font=dict(color=CYBERPUNK_COLORS['text_primary'])),
        margin=dict(l=40, r=40, t=40 if title else 10, b=30),
        height=height,
    )
    return fig


def empty_figure(title: str = "") -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text="No data yet",
        xref="paper", yref="paper",
        x=0.5, y=0.5, showarrow=False,
        font=dict(color=CYBERPUNK_COLORS['text_secondary'])
    )
    return _themed(fig, title)


def sparkline_figure(samples: Sequence[Sample]) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=list(range(len(samples))),
        y=[s.value for s in samples],
        mode="lines",
        fill="tozeroy",
        line=dict(color=CYBERPUNK_COLORS['neon_cyan'], width=1.5),
        hoverinfo="skip",
    ))
    fig.update_layout(
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        margin=dict(l=0, r=0, t=0, b=0),
        height=50,
        showlegend=False,
    )
    return fig


def loss_lr_figure(snap: PipelineSnapshot) -> go.Figure:
    loss = snap.smoothed["loss"]
    lr = snap.series[LR_SERIES]
    if not loss:
        return empty_figure("Loss and LR")
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=time_labels(loss), y=[s.value for s in loss], mode="lines", name="loss",
        line=dict(color=CYBERPUNK_COLORS['neon_cyan'], width=2),
    ))
    fig.add_trace(go.Scatter(
        x=time_labels(lr), y=[s.value for s in lr], mode="lines", name="lr", yaxis="y2",
        line=dict(color=CYBERPUNK_COLORS['neon_pink'], width=2),
    ))
    fig = _themed(fig, "Loss and LR")
    fig.update_layout(yaxis2=dict(overlaying="y", side="right", showgrid=False, exponentformat="e"))
    return fig


def line_figure(samples: Sequence[Sample], title: str, color: str, fill: bool = False) -> go.Figure:
    if not samples:
        return empty_figure(title)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=time_labels(samples), y=[s.value for s in samples], mode="lines", name=title,
        fill="tozeroy" if fill else None,
        line=dict(color=color, width=2),
    ))
    return _themed(fig, title)


def latency_figure(samples: Sequence[Sample]) -> go.Figure:
    recent = list(samples)[-60:]
    if not recent:
        return empty_figure("Latency distribution")
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=list(range(len(recent))), y=[s.value for s in recent],
        marker=dict(color=CYBERPUNK_COLORS['neon_yellow']),
    ))
    return _themed(fig, "Latency distribution")


def vram_figure(samples: Sequence[Sample]) -> go.Figure:
    if not samples:
        return empty_figure("VRAM usage")
    fig = go.Figure()
    xs = time_labels(samples)
    fig.add_trace(go.Scatter(
        x=xs, y=[s.value for s in samples], mode="lines", name="used GB", fill="tozeroy",
        line=dict(color=CYBERPUNK_COLORS['neon_green'], width=2),
    ))
    fig.add_trace(go.Scatter(
        x=xs, y=[s.extras.get("free") for s in samples], mode="lines", name="total GB",
        line=dict(color=CYBERPUNK_COLORS['text_secondary'], width=1, dash="dot"),
    ))
    return _themed(fig, "VRAM usage")


def gauge_figure(value: float) -> go.Figure:
    pct = max(0.0, min(1.0, value))
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=round(pct * 100),
        number=dict(suffix="%"),
        gauge=dict(
            axis=dict(range=[0, 100]),
            bar=dict(color=CYBERPUNK_COLORS['neon_cyan']),
            bgcolor="rgba(255,255,255,0.1)",
        ),
    ))
    return _themed(fig, "GPU Utilization")


def log_items(entries: Sequence[LogEntry]) -> list:
    if not entries:
        return [html.P("No events yet", style={"color": CYBERPUNK_COLORS['text_secondary']})]
    return [
        html.Div([
            html.Span(e.time, style={"color": CYBERPUNK_COLORS['text_secondary'], "marginRight": "12px"}),
            html.Span(e.text, style={"color": LEVEL_COLORS.get(e.level, CYBERPUNK_COLORS['text_primary'])}),
        ], style={"fontSize": "12px", "padding": "4px 0", "borderBottom": "1px solid rgba(255,255,255,0.05)"})
        for e in entries
    ]


class DashboardApp:
    def __init__(self, config: AppConfig, app: Dash | None = None, session: SimulationSession | None = None) -> None:
        self.config = config
        self.session = session or SimulationSession(config.runtime)
        if app is None:
            self.app: Dash = dash.Dash(__name__, external_stylesheets=[dbc.themes.CYBORG])
        else:
            self.app = app
        self._layout()
        self._callbacks()
        self.session.open()

    def _kpi_card(self, key: str) -> dbc.Col:
        spec = self.session.pipeline.metrics[key]
        return dbc.Col(html.Div([
            html.Div([
                html.Span(spec.label, style={"color": CYBERPUNK_COLORS['text_secondary'], "fontSize": "14px"}),
                html.Span(spec.unit, style={"color": CYBERPUNK_COLORS['text_secondary'], "fontSize": "12px", "float": "right"}),
            ]),
            html.Div(id=f"kpi-{key}", children="-", style={"fontSize": "1.6rem", "fontWeight": "bold"}),
            dcc.Graph(id=f"spark-{key}", config={"displayModeBar": False}, style={"height": "50px"}),
        ], style=PANEL_STYLE), md=3)

    def _graph(self, graph_id: str, md: int) -> dbc.Col:
        return dbc.Col(html.Div(dcc.Graph(id=graph_id, config={"displayModeBar": False}), style=PANEL_STYLE), md=md)

    def _layout(self) -> None:
        runtime = self.config.runtime
        self.app.layout = html.Div([
            html.Div([
                html.H1("TRAINING OPS", style={
                    "color": CYBERPUNK_COLORS['text_primary'],
                    "fontWeight": "900",
                    "letterSpacing": "3px",
                    "textShadow": f"0 0 20px {CYBERPUNK_COLORS['neon_purple']}",
                    "fontFamily": "'Orbitron', 'Courier New', monospace",
                }),
                dbc.Row([
                    dbc.Col(dbc.Switch(id="realtime-switch", label="Realtime", value=runtime.running), md=3),
                    dbc.Col([
                        html.Small("Update"),
                        dcc.Dropdown(
                            id="interval-select",
                            options=[{"label": f"{ms / 1000:g}s", "value": ms} for ms in INTERVAL_CHOICES_MS],
                            value=runtime.interval_ms,
                            clearable=False,
                        ),
                    ], md=3),
                    dbc.Col([
                        html.Small("Smoothing"),
                        dcc.Dropdown(
                            id="window-select",
                            options=[{"label": f"x{w}", "value": w} for w in SMOOTH_WINDOW_CHOICES],
                            value=runtime.smooth_window,
                            clearable=False,
                        ),
                    ], md=3),
                    dbc.Col(html.Div(id="status-text", style={"color": CYBERPUNK_COLORS['neon_green']}), md=3),
                ], align="center"),
            ], style=PANEL_STYLE),

            dbc.Row([self._kpi_card(key) for key, _ in KPI_CARDS]),
            dbc.Row([
                self._graph("loss-lr", md=8),
                self._graph("gpu-gauge", md=4),
            ]),
            dbc.Row([
                self._graph("throughput", md=4),
                self._graph("latency", md=4),
                self._graph("grad-norm", md=4),
            ]),
            dbc.Row([
                self._graph("vram", md=8),
                dbc.Col(html.Div([
                    html.H5("Event log", style={"color": CYBERPUNK_COLORS['neon_green']}),
                    html.Div(id="event-log", style={"height": "220px", "overflowY": "auto"}),
                ], style=PANEL_STYLE), md=4),
            ]),

            # Hidden elements
            dcc.Interval(id="tick", interval=min(INTERVAL_CHOICES_MS), n_intervals=0),
            dcc.Interval(id="visibility-probe", interval=1000, n_intervals=0),
            dcc.Store(id="page-visibility", storage_type="memory"),
            html.Div(id="config-ack", style={"display": "none"}),
        ], style={
            "backgroundColor": CYBERPUNK_COLORS['bg_dark'],
            "color": CYBERPUNK_COLORS['text_primary'],
            "minHeight": "100vh",
            "padding": "20px",
            "fontFamily": "'Courier New', monospace",
        })

    def _callbacks(self) -> None:
        # document.hidden is only known in the browser
        self.app.clientside_callback(
            """
            function(n) {
                return { hidden: document.hidden === true };
            }
            """,
            Output("page-visibility", "data"),
            Input("visibility-probe", "n_intervals"),
        )

        @self.app.callback(
            Output("realtime-switch", "value"),
            Input("realtime-switch", "value"),
            Input("page-visibility", "data"),
        )
        def sync_running(value: bool | None, visibility: dict | None) -> bool:
            trigger = ctx.triggered_id
            if trigger == "page-visibility" and visibility is not None:
                self.session.set_page_hidden(bool(visibility.get("hidden")))
            elif trigger == "realtime-switch" and value is not None:
                self.session.set_running(bool(value))
            return self.session.running

        @self.app.callback(
            Output("config-ack", "children"),
            Input("interval-select", "value"),
            Input("window-select", "value"),
        )
        def update_config(interval_ms: int | None, window: int | None) -> str:
            if interval_ms is not None:
                self.session.set_interval(int(interval_ms))
            if window is not None:
                self.session.set_window(int(window))
            return f"interval={self.session.scheduler.interval_ms} window={self.session.smooth_window}"

        outputs = [Output("status-text", "children")]
        for key, _ in KPI_CARDS:
            outputs.append(Output(f"kpi-{key}", "children"))
            outputs.append(Output(f"spark-{key}", "figure"))
        outputs += [
            Output("loss-lr", "figure"),
            Output("gpu-gauge", "figure"),
            Output("throughput", "figure"),
            Output("latency", "figure"),
            Output("grad-norm", "figure"),
            Output("vram", "figure"),
            Output("event-log", "children"),
        ]

        @self.app.callback(*outputs, Input("tick", "n_intervals"))
        def refresh(_: int) -> tuple:
            # One view per refresh so every panel shows the same tick
            return tuple(self.render(self.session.view()))

    def render(self, view: SessionView) -> list:
        snap = view.snapshot
        state = "RUNNING" if view.running else "PAUSED"
        values: list = [f"{state} • step {snap.tick_index}"]
        for key, fmt in KPI_CARDS:
            trend = snap.series[key] if key in RAW_SPARKLINES else snap.smoothed[key]
            values.append(format_kpi(snap.latest(key), fmt))
            values.append(sparkline_figure(trend))
        values += [
            loss_lr_figure(snap),
            gauge_figure(snap.gauge),
            line_figure(snap.smoothed["tokens_per_sec"], "Throughput", CYBERPUNK_COLORS['neon_cyan'], fill=True),
            latency_figure(snap.series["latency_ms"]),
            line_figure(snap.series["grad_norm"], "Gradient norm", CYBERPUNK_COLORS['neon_purple']),
            vram_figure(snap.series["vram"]),
            log_items(snap.logs),
        ]
        return values


def build_dash_app(config: AppConfig | None = None, session: SimulationSession | None = None) -> Dash:
    cfg = config or load_config()
    d = DashboardApp(cfg, session=session)
    return d.app
