"""Logging setup shared by the Streamlit pages."""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once per process. Streamlit re-executes page
    scripts on every interaction, so repeated calls must not stack handlers.
    """
    root = logging.getLogger()
    if getattr(configure_logging, "_done", False):
        root.setLevel(level.upper())
        return

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # supabase's http stack is chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    configure_logging._done = True
