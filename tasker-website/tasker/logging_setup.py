from __future__ import annotations

import logging

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once per process.

    Streamlit re-executes page scripts on every interaction, so repeated
    calls must not stack handlers.
    """
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    _configured = True
