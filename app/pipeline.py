"""Shared pipeline for all Streamlit sessions"""
import streamlit as st
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from services.ai_workflow.orchestrator import DashboardPipeline, build_pipeline


@st.cache_resource
def get_pipeline() -> DashboardPipeline:
    """Build the pipeline once per server process"""
    return build_pipeline()
