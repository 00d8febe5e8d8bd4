from __future__ import annotations

import argparse

import uvicorn

from reqlog.config import get_settings
from reqlog.observability.logging import configure_logging


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="reqlog demo service")
    parser.add_argument("--host", default=settings.app_host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.app_port, help="Port to listen on")
    args = parser.parse_args()

    configure_logging(settings)
    # log_config=None keeps uvicorn from replacing the handlers installed above.
    uvicorn.run("reqlog.main:app", host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
