from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    resolved = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(format=_FORMAT, stream=sys.stdout, level=resolved, force=True)

    for noisy in ("urllib3", "pymongo"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
