from __future__ import annotations

import logging
from typing import Optional

from ..config import AppConfig, load_config
from .dashboard import build_dash_app


logger = logging.getLogger(__name__)


def serve(host: Optional[str] = None, port: Optional[int] = None, config: Optional[AppConfig] = None) -> None:
    cfg = config or load_config()
    bind_host = host or cfg.env.DASH_HOST
    bind_port = cfg.env.DASH_PORT if port is None else port
    dash_app = build_dash_app(cfg)
    logger.info("dashboard listening", extra={"host": bind_host, "port": bind_port})
    dash_app.run(host=bind_host, port=bind_port, debug=False)


if __name__ == "__main__":  # pragma: no cover
    serve()
