"""Rich-handler logging preset."""
import logging
from rich.logging import RichHandler
from .app_config import settings

def configure():
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(name)-24s │ %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, markup=False)],
    )
