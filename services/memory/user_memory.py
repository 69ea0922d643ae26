"""
user_memory.py
Per-user long-term memory on top of a vector store.

Every public method degrades to a silent no-op when the vector store is not
configured or fails: memory must never break the dashboard pipeline.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from services.ai_workflow.data_model import MemoryEntry, MemoryMetadata, MemorySearchResult
from services.constants import (
    CONTEXT_RECENT_COUNT,
    CONTEXT_RELEVANT_COUNT,
    IMPORTANCE_BASE,
    MEMORY_MIN_SIMILARITY,
    MEMORY_SEARCH_LIMIT,
    RECENT_MEMORY_LIMIT,
    RECENT_MEMORY_QUERY,
)
from services.embeddings import EmbeddingProvider
from services.memory import extraction
from services.vectorstores.pinecone_store import VectorMatch, VectorStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _user_filter(user_id: str) -> Dict[str, Any]:
    return {"userId": {"$eq": user_id}}


def _match_to_result(match: VectorMatch) -> MemorySearchResult:
    meta = match.metadata or {}
    return MemorySearchResult(
        id=match.id,
        content=str(meta.get("content", "")),
        context_label=str(meta.get("context", "")),
        similarity=float(match.score),
        timestamp=str(meta.get("timestamp", "")),
        metadata=MemoryMetadata(
            query_type=meta.get("queryType"),
            entities=list(meta.get("entities") or []),
            keywords=list(meta.get("keywords") or []),
            topic=meta.get("topic"),
        ),
    )


class UserMemoryStore:
    """Stores and searches conversation fragments, partitioned by user id."""

    def __init__(
        self,
        vector_store: Optional[VectorStore],
        embedder: EmbeddingProvider,
        min_similarity: float = MEMORY_MIN_SIMILARITY,
        search_limit: int = MEMORY_SEARCH_LIMIT,
    ):
        self.vector_store = vector_store
        self.embedder = embedder
        self.min_similarity = min_similarity
        self.search_limit = search_limit

        if not self.is_memory_enabled():
            logger.warning("[UserMemory] Vector store not configured, memory features disabled")

    def is_memory_enabled(self) -> bool:
        if self.vector_store is None:
            return False
        try:
            return bool(self.vector_store.is_available())
        except Exception:
            logger.exception("[UserMemory] Vector store availability check failed")
            return False

    def store_memory(
        self,
        user_id: str,
        content: str,
        context_label: str,
        session_id: Optional[str] = None,
        importance: int = IMPORTANCE_BASE,
        metadata: Optional[MemoryMetadata] = None,
    ) -> Optional[str]:
        """
        Embed a memory and write it to the vector store.

        Returns:
            The new entry id, or None when memory is disabled or the write failed
        """
        if not self.is_memory_enabled():
            logger.info("[UserMemory] Memory storage disabled, skipping")
            return None

        try:
            entry = MemoryEntry(
                id=f"{user_id}-{uuid.uuid4().hex}",
                user_id=user_id,
                content=content,
                context_label=context_label,
                timestamp=datetime.now(timezone.utc).isoformat(),
                session_id=session_id,
                importance=extraction.clamp_importance(importance),
                metadata=metadata or MemoryMetadata(),
            )
            vector = self.embedder.embed(content)
            self.vector_store.upsert(entry.id, vector, entry.to_vector_metadata())

            logger.info(f"[UserMemory] Stored memory for user {user_id}: {context_label}")
            return entry.id

        except Exception as e:
            logger.error(f"[UserMemory] Failed to store memory: {e}", exc_info=True)
            return None

    def search_memories(
        self,
        user_id: str,
        query: str,
        limit: Optional[int] = None,
        min_similarity: Optional[float] = None,
    ) -> List[MemorySearchResult]:
        """
        Memories of one user similar to the query, best first.

        The vector store has no score threshold, so limit*2 candidates are
        fetched and filtered here. Results never belong to another user, never
        exceed `limit` and never score below `min_similarity`.
        """
        limit = self.search_limit if limit is None else limit
        min_similarity = self.min_similarity if min_similarity is None else min_similarity

        if limit <= 0 or not self.is_memory_enabled():
            return []

        try:
            query_vector = self.embedder.embed(query)
            matches = self.vector_store.query(
                query_vector,
                top_k=limit * 2,
                metadata_filter=_user_filter(user_id),
                include_metadata=True,
            )

            memories = [
                _match_to_result(match) for match in matches
                if (match.metadata or {}).get("userId") == user_id
                and match.score >= min_similarity
            ]
            memories.sort(key=lambda m: m.similarity, reverse=True)
            memories = memories[:limit]

            logger.info(f"[UserMemory] Found {len(memories)} relevant memories for user {user_id}")
            return memories

        except Exception as e:
            logger.error(f"[UserMemory] Failed to search memories: {e}", exc_info=True)
            return []

    def get_recent_memories(self, user_id: str, limit: int = RECENT_MEMORY_LIMIT) -> List[MemorySearchResult]:
        """
        Most recent memories of one user, newest first.
        """
        if limit <= 0 or not self.is_memory_enabled():
            return []

        try:
            neutral_vector = self.embedder.embed(RECENT_MEMORY_QUERY)
            matches = self.vector_store.query(
                neutral_vector,
                top_k=limit,
                metadata_filter=_user_filter(user_id),
                include_metadata=True,
            )

            memories = [
                _match_to_result(match) for match in matches
                if (match.metadata or {}).get("userId") == user_id
            ]
            # ISO-8601 UTC timestamps sort chronologically as strings
            memories.sort(key=lambda m: m.timestamp, reverse=True)
            return memories[:limit]

        except Exception as e:
            logger.error(f"[UserMemory] Failed to get recent memories: {e}", exc_info=True)
            return []

    def build_user_context(self, user_id: str, query: str) -> str:
        """
        Text block of relevant and recent memories, one "label: content" line each.
        Entries can appear in both sections.
        """
        relevant = self.search_memories(user_id, query, CONTEXT_RELEVANT_COUNT)
        recent = self.get_recent_memories(user_id, CONTEXT_RECENT_COUNT)

        lines: List[str] = []
        if relevant:
            lines.append("## Relevant Previous Conversations:")
            lines.extend(f"{m.context_label}: {m.content}" for m in relevant)

        if recent:
            lines.append("## Recent Conversation Context:")
            lines.extend(f"{m.context_label}: {m.content}" for m in recent[:CONTEXT_RECENT_COUNT])

        return "\n".join(lines)

    def process_conversation(
        self,
        user_id: str,
        user_message: str,
        assistant_response: str,
        session_id: Optional[str] = None,
        topic_label: Optional[str] = None,
    ) -> None:
        """
        Store both sides of a conversational turn. Never raises.
        """
        try:
            topic = topic_label or extraction.extract_topic(user_message)
            importance = extraction.calculate_importance(user_message, assistant_response)

            self.store_memory(
                user_id,
                user_message,
                f"User asked: {topic}",
                session_id,
                importance,
                MemoryMetadata(
                    query_type="user_question",
                    entities=extraction.extract_entities(user_message),
                    keywords=extraction.extract_keywords(user_message),
                    topic=topic,
                ),
            )

            self.store_memory(
                user_id,
                assistant_response,
                f"Assistant answered: {topic}",
                session_id,
                importance,
                MemoryMetadata(
                    query_type="assistant_response",
                    entities=extraction.extract_entities(assistant_response),
                    keywords=extraction.extract_keywords(assistant_response),
                    topic=topic,
                ),
            )
        except Exception as e:
            logger.error(f"[UserMemory] Failed to process conversation: {e}", exc_info=True)
