"""Console logging for the CLI and server. The library never calls this."""

import logging
import warnings

from rich.console import Console
from rich.logging import RichHandler

NOISY_LOGGERS = ("LiteLLM", "litellm", "httpx", "httpcore")


def configure_logging(level: str = "WARNING", console: Console | None = None) -> None:
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        level_no = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level_no,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level_no, logging.WARNING))

    # LiteLLM's pydantic models warn on every response
    warnings.filterwarnings("ignore", message="Pydantic serializer warnings")
