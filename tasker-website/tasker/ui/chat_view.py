from __future__ import annotations

import html
from typing import List

import streamlit as st

from tasker.chat import ProjectChat
from tasker.config import get_config
from tasker.context import AppContext
from tasker.models import ChatMessage
from tasker.ui.state import get_scope


@st.fragment(run_every=get_config().refresh_seconds)
def _messages_fragment(chat: ProjectChat) -> None:
    query = get_scope().acquire(f"chat:{chat.project_id}", chat.messages)
    messages: List[ChatMessage] = query.items
    # Fixed height keeps the stream scrollable; newest message is rendered last.
    with st.container(height=420):
        if query.loaded and not messages:
            st.caption("No messages yet. Start the conversation!")
        for msg in messages:
            own = msg.user_id == chat.ctx.user_id
            with st.chat_message("user" if own else "assistant", avatar="🧑" if own else "👥"):
                when = msg.created_at.strftime("%H:%M:%S") if msg.created_at else ""
                st.caption(f"{chat.author_label(msg)} · {when}")
                st.markdown(html.escape(msg.message))


def render_project_chat(ctx: AppContext, project_id: str) -> None:
    chat = ProjectChat(ctx, project_id)
    _messages_fragment(chat)
    text = st.chat_input("Write a message…", key=f"chat-input-{project_id}")
    if text is not None:
        chat.send(text)
        st.rerun()
