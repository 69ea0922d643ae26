"""Log viewer component"""
from datetime import datetime
import streamlit as st
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.pipeline import get_pipeline

class LogViewer:
    """Manages log viewing interface"""

    @staticmethod
    def render_log_entry(log: dict) -> None:
        """Render a single log entry"""
        summary = log.get("summary") or {}
        st.markdown(f"""
        <div class="log-entry">
            <div class="log-timestamp">
                {datetime.fromisoformat(log['timestamp']).strftime('%Y-%m-%d %H:%M:%S')}
            </div>
            <div class="log-question">Q: {log['query']}</div>
            <div class="log-response">Dashboard: {log['title'] or '(none)'} ({log['visualization_kind'] or 'n/a'})</div>
            <div class="status-{'ok' if log['success'] else 'failed'}">
                {'Completed' if log['success'] else 'Failed'} in {summary.get('total_time_ms', 0):.0f} ms
            </div>
        </div>
        """, unsafe_allow_html=True)

        with st.expander("View Phase Details"):
            st.json({
                "phase_timings_ms": summary.get("phase_timings_ms", {}),
                "phase_status": summary.get("phase_status", {}),
                "decisions": summary.get("decisions", {}),
            })

    @staticmethod
    def render_logs() -> None:
        """Render the logs interface in the sidebar"""
        if "show_logs" not in st.session_state:
            st.session_state.show_logs = False

        if st.sidebar.button("📋 View Interaction Logs", key="toggle_logs"):
            st.session_state.show_logs = not st.session_state.show_logs

        if st.session_state.show_logs:
            with st.sidebar:
                st.markdown("### Recent Runs")
                all_logs = get_pipeline().interaction_log.get_all_logs()

                if not all_logs:
                    st.info("No interaction history yet.")
                else:
                    for log in all_logs:
                        with st.expander(f"Q: {log['query'][:50]}...", expanded=False):
                            LogViewer.render_log_entry(log)
