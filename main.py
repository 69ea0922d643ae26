# ------------------------------------------------------------------
# Project's Testing Entry Point
# Run: python main.py
# Note: Please run the Streamlit app using: streamlit run app/app.py
# ------------------------------------------------------------------

import json

from services.ai_workflow.orchestrator import build_pipeline
from services.errors import PipelineFatalError

SAMPLE_QUERIES = [
    "Show me the market share breakdown of smartphone brands",
    "Analyze my recent conversation history and show patterns in topics I discuss",
    "Compare F1 teams in 2000 and 2025",
]

SAMPLE_USER_ID = "demo-user"


if __name__ == "__main__":

    pipeline = build_pipeline()

    for query in SAMPLE_QUERIES:
        try:
            output, summary = pipeline.run_pipeline_with_monitoring(query, SAMPLE_USER_ID)
        except PipelineFatalError as e:
            print(f"FAILED in {e.phase}: {e.message}")
            continue

        print(json.dumps(output.to_dict(), indent=2, ensure_ascii=False))
        print(json.dumps(summary["decisions"], indent=2))

        pipeline.record_interaction(SAMPLE_USER_ID, query, output.summary or output.title)
