"""Dashboard component"""
import logging
import streamlit as st
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from services.ai_workflow.data_model import Citation, DashboardOutput, Sublink
from services.visualization_logic import build_figure

logger = logging.getLogger(__name__)

class Dashboard:
    """Renders a DashboardOutput"""

    @staticmethod
    def render_sections(sections: List[Dict[str, Any]]) -> None:
        """Render narrative sections (heading, description, bullets)"""
        for section in sections:
            if section.get("heading"):
                st.markdown(f"#### {section['heading']}")
            if section.get("description"):
                st.write(section["description"])
            for bullet in section.get("bullets") or []:
                st.markdown(f"- {bullet}")

    @staticmethod
    def render_sublinks(sublinks: List[Sublink]) -> None:
        """Render drill-down links with their context"""
        st.markdown("**Explore further**")
        for sublink in sublinks:
            with st.expander(f"➡️ {sublink.label}"):
                st.caption(sublink.route)
                st.json(sublink.context)

    @staticmethod
    def render_citations(citations: List[Citation]) -> None:
        """Render sources"""
        with st.expander("🔍 View Sources"):
            for citation in citations:
                st.markdown(f"**{citation.title}**: {citation.url}")
                if citation.snippet:
                    st.caption(citation.snippet)

    @staticmethod
    def render_dashboard(output: DashboardOutput, summary: Optional[Dict[str, Any]] = None) -> None:
        """Render the dashboard interface"""
        try:
            st.markdown(f"### {output.title}")
            if output.summary:
                st.write(output.summary)

            figure = build_figure(output)
            if figure is not None:
                st.plotly_chart(figure, use_container_width=True)
            elif output.visualization_kind.is_textual:
                Dashboard.render_sections(output.data)
            elif output.data:
                st.dataframe(output.data)
            else:
                st.warning("No data to display for this query.")

            if output.image_prompt:
                st.caption(f"🖼️ Suggested illustration: {output.image_prompt}")
            if output.sublinks:
                Dashboard.render_sublinks(output.sublinks)
            if output.citations:
                Dashboard.render_citations(output.citations)

            if summary:
                with st.expander("⏱️ Execution details"):
                    st.json(summary)

        except Exception as e:
            logger.error(f"Error rendering dashboard: {str(e)}")
            st.error("Error rendering dashboard")
            with st.expander("See error details"):
                st.exception(e)
