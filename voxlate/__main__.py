"""Entry point for the voxlate web API."""

import logging
import os

from .ui_web.app import main


def run() -> int:
    logging.basicConfig(
        level=os.environ.get("VOXLATE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return main()


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(run())
