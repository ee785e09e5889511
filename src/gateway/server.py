from __future__ import annotations

import argparse

import uvicorn

from common.logging_utils import get_logger, set_level
from gateway.app import create_app
from gateway.config import load_gateway_config


logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Run the RiskGate ingestion gateway")
    ap.add_argument("--config", default=None, help="Optional YAML config (overrides environment)")
    ap.add_argument("--host", default=None, help="Bind address (overrides config/HOST)")
    ap.add_argument("--port", type=int, default=None, help="Listen port (overrides config/PORT)")
    ap.add_argument("--log-level", default=None, help="Log level, e.g. INFO or DEBUG")
    args = ap.parse_args(argv)

    if args.log_level:
        set_level(args.log_level)

    config = load_gateway_config(args.config, host=args.host, port=args.port)
    app = create_app(config)

    logger.info("Ingestion API listening on http://%s:%s", config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None, access_log=False)


if __name__ == "__main__":
    main()
