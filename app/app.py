"""
Query Dashboard Application

A Streamlit application that turns free-text questions into dashboards,
grounded in each user's conversation memory.
"""
import sys
from pathlib import Path
import logging
import streamlit as st

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Now we can import our modules
from app.components import ChatManager, LogViewer
from app.pipeline import get_pipeline
from app.styles import STYLES

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def initialize_session_state():
    """Initialize session state variables"""
    if 'messages' not in st.session_state:
        st.session_state.messages = []
    if 'show_logs' not in st.session_state:
        st.session_state.show_logs = False
    ChatManager.ensure_identity()

def render_recent_memories(memory_store):
    """List the user's latest stored memories"""
    memories = memory_store.get_recent_memories(st.session_state.user_id)
    with st.expander(f"Recent memories ({len(memories)})"):
        if not memories:
            st.caption("Nothing remembered yet")
        for memory in memories:
            st.markdown(f"**{memory.context_label}**")
            st.caption(f"{memory.timestamp[:19].replace('T', ' ')} · {memory.content[:150]}")

def render_sidebar():
    """Render sidebar content"""
    pipeline = get_pipeline()
    with st.sidebar:
        st.markdown("### 🧠 Memory")
        if pipeline.memory_store is not None and pipeline.memory_store.is_memory_enabled():
            st.success("User memory enabled")
            render_recent_memories(pipeline.memory_store)
        else:
            st.info("User memory disabled (no vector store configured)")
        st.caption(f"User: {st.session_state.user_id}")

        st.markdown("### 🔍 Tools")

        # Render logs in sidebar
        LogViewer.render_logs()

def main():
    """Main application entry point"""
    st.set_page_config(layout="wide", page_title="Query Dashboard")
    st.markdown(f"<style>{STYLES}</style>", unsafe_allow_html=True)

    initialize_session_state()

    render_sidebar()

    st.title("📊 Query Dashboard")

    ChatManager.render_chat_interface()

if __name__ == "__main__":
    main()
