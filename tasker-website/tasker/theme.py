import functools
import logging
import os

import streamlit as st
from streamlit.errors import StreamlitAPIException


logger = logging.getLogger(__name__)

CSS_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "assets", "custom_theme.css")


@functools.lru_cache(maxsize=None)
def _load_css(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def set_theme(
    page_title: str = "Team Tasker",
    page_icon: str = "📋",
    layout: str = "wide",
    initial_sidebar_state: str = "expanded",
    css_path: str = CSS_PATH,
):
    """Configure the Streamlit page and inject the board/card styles.

    Streamlit honours only the first set_page_config of a run; later calls
    are ignored. The CSS is injected on every call.
    """
    try:
        st.set_page_config(
            page_title=page_title,
            page_icon=page_icon,
            layout=layout,
            initial_sidebar_state=initial_sidebar_state,
        )
    except StreamlitAPIException as exc:
        logger.debug("page config already set: %s", exc)

    try:
        css = _load_css(os.path.normpath(css_path))
    except FileNotFoundError:
        logger.warning("theme file not found at %s", css_path)
        return
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)
