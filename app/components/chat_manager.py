"""Chat interface management component"""
import logging
import threading
import uuid
import streamlit as st
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.components.dashboard import Dashboard
from app.pipeline import get_pipeline
from services.ai_workflow.data_model import DashboardOutput
from services.errors import PipelineFatalError

logger = logging.getLogger(__name__)

MAX_MESSAGES = 40

class ChatManager:
    """Manages chat interface and interactions"""

    @staticmethod
    def ensure_identity() -> None:
        """Give the browser session a stable user id and session id"""
        if "user_id" not in st.session_state:
            st.session_state.user_id = f"user-{uuid.uuid4().hex[:12]}"
        if "session_id" not in st.session_state:
            st.session_state.session_id = uuid.uuid4().hex

    @staticmethod
    def display_chat_history() -> None:
        """Display existing chat history"""
        for msg in st.session_state.messages:
            with st.chat_message(msg["role"]):
                if msg.get("dashboard"):
                    Dashboard.render_dashboard(
                        DashboardOutput.from_dict(msg["dashboard"]),
                        msg.get("summary"),
                    )
                else:
                    st.write(msg["content"])

    @staticmethod
    def record_in_background(user_id: str, prompt: str, output: DashboardOutput) -> None:
        """Store the turn in user memory without blocking the response"""
        assistant_text = output.summary or output.title
        threading.Thread(
            target=get_pipeline().record_interaction,
            args=(user_id, prompt, assistant_text),
            kwargs={"session_id": st.session_state.session_id},
            daemon=True,
        ).start()

    @staticmethod
    def handle_user_input(prompt: str) -> None:
        """Process user input and generate a dashboard"""
        ChatManager.ensure_identity()

        if len(st.session_state.messages) >= MAX_MESSAGES:
            st.session_state.messages = st.session_state.messages[-(MAX_MESSAGES - 1):]

        st.session_state.messages.append({"role": "user", "content": prompt})
        with st.chat_message("user"):
            st.write(prompt)

        try:
            with st.spinner("Building your dashboard..."):
                output, summary = get_pipeline().run_pipeline_with_monitoring(
                    prompt, st.session_state.user_id
                )
        except PipelineFatalError as e:
            logger.error(f"Pipeline failed in phase {e.phase}: {e.message}")
            st.session_state.messages.append({
                "role": "assistant",
                "content": "❌ Sorry, something went wrong while building this dashboard. Please try again.",
            })
            with st.chat_message("assistant"):
                st.error("❌ Sorry, something went wrong while building this dashboard. Please try again.")
            return

        st.session_state.messages.append({
            "role": "assistant",
            "content": output.summary or output.title,
            "dashboard": output.to_dict(),
            "summary": summary,
        })
        with st.chat_message("assistant"):
            Dashboard.render_dashboard(output, summary)

        ChatManager.record_in_background(st.session_state.user_id, prompt, output)

    @staticmethod
    def render_chat_interface() -> None:
        """Render the chat interface"""
        st.markdown("### 💬 Ask for a dashboard")

        ChatManager.display_chat_history()

        if prompt := st.chat_input("Show me the market share breakdown of smartphone brands"):
            ChatManager.handle_user_input(prompt)

        if st.session_state.messages and st.button("Clear Chat"):
            st.session_state.messages = []
            st.rerun()
