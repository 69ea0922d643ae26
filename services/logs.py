import logging
import threading
from collections import deque
from typing import Any, Dict, List, Optional
from datetime import datetime

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 200


class InteractionLog:
    """In-memory log of recent pipeline runs, newest entries dropped last."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        self._entries = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def log_run(
        self,
        query: str,
        user_id: str,
        title: str,
        visualization_kind: str,
        summary: Dict[str, Any],
        success: bool = True,
    ) -> None:
        """
        Log one pipeline run.

        Args:
            query: The user's query
            user_id: Who asked
            title: Title of the produced dashboard, "" on failure
            visualization_kind: Kind of the produced dashboard
            summary: Execution summary of the run (phase timings, decisions)
            success: False when the run ended in the error phase
        """
        try:
            entry = {
                "timestamp": datetime.now().isoformat(),
                "query": query,
                "user_id": user_id,
                "title": title,
                "visualization_kind": visualization_kind,
                "success": success,
                "summary": summary,
            }
            with self._lock:
                self._entries.append(entry)
            logger.info(f"Logged run: {query[:50]}... -> {title[:50]}")
        except Exception as e:
            logger.error(f"Error logging run: {str(e)}")

    def get_all_logs(self) -> List[Dict]:
        """Get all logs, sorted by timestamp (newest first)."""
        with self._lock:
            return sorted(self._entries, key=lambda x: x["timestamp"], reverse=True)

    def get_latest_log(self) -> Optional[Dict]:
        """Get the most recent log entry."""
        with self._lock:
            return self._entries[-1] if self._entries else None

    def clear_logs(self) -> None:
        """Clear all logs from memory."""
        with self._lock:
            self._entries.clear()
        logger.info("Cleared all interaction logs")

    def __len__(self) -> int:
        return len(self._entries)
