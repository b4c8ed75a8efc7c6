import logging
import sys


def setup_logging(level="INFO") -> None:
    """Install a single stderr handler on the root logger. Call once at startup."""
    root = logging.getLogger()
    root.setLevel(level)

    # Drop handlers left over from earlier configuration (e.g. uvicorn reload).
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
    logging.captureWarnings(True)
