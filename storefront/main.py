"""Entry point for the storefront Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from storefront.config import DEBUG_LOG_PATH
from storefront.storefront_app import StorefrontApp


def configure_logging(path: str | Path = DEBUG_LOG_PATH) -> None:
    """Send library and app logs to the debug file; the terminal belongs to the UI."""
    log_path = Path(path)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    # Connection-pool chatter drowns the app trail.
    logging.getLogger("urllib3").setLevel(logging.INFO)


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    StorefrontApp().run()


if __name__ == "__main__":
    main()
