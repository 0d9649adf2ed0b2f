from __future__ import annotations

import json
import logging
import signal
import threading
from typing import Optional

import typer

from trainops.config import load_config
from trainops.core.session import SimulationSession
from trainops.utils.logging import setup_logging
from trainops.web.server import serve as serve_web


app = typer.Typer(add_completion=False)
logger = logging.getLogger("trainops.cli")


def summarize(session: SimulationSession) -> dict:
    view = session.view()
    snap = view.snapshot
    out: dict = {"step": snap.tick_index, "gpu_util": round(snap.gauge, 4)}
    for key in session.pipeline.keys():
        latest = snap.latest(key)
        out[key] = None if latest is None else latest.value
    smoothed_loss = snap.smoothed["loss"]
    out["loss_smoothed"] = smoothed_loss[-1].value if smoothed_loss else None
    out["events"] = len(snap.logs)
    return out


@app.command()
def serve(host: Optional[str] = typer.Option(None), port: Optional[int] = typer.Option(None)) -> None:
    cfg = load_config()
    setup_logging(cfg.env.LOG_LEVEL)
    serve_web(host=host, port=port)


@app.command()
def run(
    interval_ms: Optional[int] = typer.Option(None, help="Tick period: 500, 1000, 2000 or 5000"),
    log_level: str = typer.Option("INFO"),
) -> None:
    """Run a headless live session, logging a summary every second."""
    cfg = load_config()
    setup_logging(log_level)
    session = SimulationSession(cfg.runtime)
    if interval_ms is not None:
        session.set_interval(interval_ms)

    stop_event = threading.Event()

    def handle_signal(signum, frame):  # noqa: ANN001, D401
        stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    session.resume()
    typer.echo("Running. Press Ctrl+C to stop.")
    try:
        while not stop_event.wait(timeout=1.0):
            logger.info("session summary", extra=summarize(session))
    finally:
        session.close()


@app.command()
def simulate(
    ticks: int = typer.Option(10, min=1, help="Number of ticks to advance"),
    window: Optional[int] = typer.Option(None, help="Smoothing window: 1, 3, 4 or 8"),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible output"),
) -> None:
    """Advance a session synchronously and print the latest values as JSON."""
    cfg = load_config()
    runtime = cfg.runtime.model_copy(update={"seed": seed} if seed is not None else {})
    session = SimulationSession(runtime, use_thread=False)
    if window is not None:
        session.set_window(window)
    session.resume()
    session.advance(ticks)
    session.close()
    typer.echo(json.dumps(summarize(session), indent=2))


if __name__ == "__main__":
    app()
