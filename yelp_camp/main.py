"""
Development server entry point.

Usage:
    python -m yelp_camp.main

For production, serve the factory with a WSGI server instead, e.g.
``gunicorn "yelp_camp.app:create_app()"``.
"""

import atexit
import signal
import sys
from types import FrameType
from typing import Optional

from yelp_camp.app import create_app
from yelp_camp.context import get_runtime
from yelp_camp.logging_config import get_logger

logger = get_logger(__name__)


def install_shutdown_handlers(runtime) -> None:
    """Release pooled connections on SIGTERM/SIGINT and at interpreter exit."""

    def _shutdown(signum: int, frame: Optional[FrameType]) -> None:  # pylint: disable=unused-argument
        logger.info("Received signal %s, shutting down", signal.Signals(signum).name)
        runtime.close()
        sys.exit(0)

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)
    atexit.register(runtime.close)


def main() -> int:
    app = create_app()
    runtime = get_runtime(app)
    install_shutdown_handlers(runtime)

    settings = runtime.settings
    logger.info("Serving on PORT %s", settings.port)
    app.run(host=settings.host, port=settings.port, debug=settings.debug)
    return 0


if __name__ == "__main__":
    sys.exit(main())
