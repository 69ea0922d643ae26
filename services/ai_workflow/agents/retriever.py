"""
retriever.py
Gathers context for synthesis from the user's memory and external knowledge.
"""

import logging
from typing import List, Optional

from services.ai_workflow.data_model import (
    Citation,
    Classification,
    ContextBundle,
    ContextChunk,
    MemorySearchResult,
)
from services.ai_workflow.utils.external_knowledge import KnowledgeSource, StaticKnowledgeSource
from services.constants import (
    CITATION_SNIPPET_CHARS,
    DEGRADED_CHUNK_RELEVANCE,
    MEMORY_CITATION_URL,
    MEMORY_MIN_SIMILARITY,
    MEMORY_SEARCH_LIMIT,
    VISUALIZATION_CONTEXT_HINTS,
)
from services.memory.user_memory import UserMemoryStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def memory_to_chunk(memory: MemorySearchResult) -> ContextChunk:
    return ContextChunk(
        text=memory.content,
        source=f"User Memory ({memory.context_label})",
        relevance=memory.similarity,
    )


def memory_to_citation(memory: MemorySearchResult) -> Citation:
    return Citation(
        title=memory.context_label,
        url=MEMORY_CITATION_URL,
        snippet=memory.content[:CITATION_SNIPPET_CHARS] + "...",
    )


def visualization_hint(kind: str) -> str:
    return VISUALIZATION_CONTEXT_HINTS.get(kind, f"Optimize content for {kind} visualization format")


def annotate_chunks(chunks: List[ContextChunk], kind: str) -> List[ContextChunk]:
    '''
        Append a short note on the target visualization to every chunk.
    '''
    hint = visualization_hint(kind)
    return [
        ContextChunk(text=f"{chunk.text} [Note: {hint}]", source=chunk.source, relevance=chunk.relevance)
        for chunk in chunks
    ]


def degraded_bundle(query: str) -> ContextBundle:
    return ContextBundle(
        chunks=[
            ContextChunk(
                text=f"Retrieval temporarily unavailable. Proceeding with general knowledge for: {query}",
                source="System",
                relevance=DEGRADED_CHUNK_RELEVANCE,
            )
        ],
        citations=[],
        strategy="degraded",
    )


class RetrievalStage:
    """
    Picks context sources from the classification flags.

    Memory is searched when the query needs it. External knowledge is used when
    the query needs it or when memory came back empty. Neither source failing
    ever raises, the stage falls back to one low-relevance system chunk.

    When memory is needed the bundle also carries the user context block
    (relevant and recent memories) for the synthesis prompts.
    """

    def __init__(
        self,
        memory_store: Optional[UserMemoryStore],
        knowledge_source: Optional[KnowledgeSource] = None,
        search_limit: int = MEMORY_SEARCH_LIMIT,
        min_similarity: float = MEMORY_MIN_SIMILARITY,
    ):
        self.memory_store = memory_store
        self.knowledge_source = knowledge_source or StaticKnowledgeSource()
        self.search_limit = search_limit
        self.min_similarity = min_similarity

    @staticmethod
    def is_needed(classification: Classification) -> bool:
        return classification.requires_memory or classification.requires_external

    def _search_memory(self, query: str, user_id: str) -> List[MemorySearchResult]:
        if self.memory_store is None or not user_id:
            return []
        try:
            return self.memory_store.search_memories(user_id, query, self.search_limit, self.min_similarity)
        except Exception as e:
            logger.warning(f"[Retriever] User memory retrieval failed: {e}")
            return []

    def _build_user_context(self, query: str, user_id: str) -> str:
        if self.memory_store is None or not user_id:
            return ""
        try:
            return self.memory_store.build_user_context(user_id, query)
        except Exception as e:
            logger.warning(f"[Retriever] Building user context failed: {e}")
            return ""

    def _lookup_external(self, query: str, classification: Classification) -> Optional[ContextBundle]:
        try:
            return self.knowledge_source.lookup(query, classification)
        except Exception as e:
            logger.warning(f"[Retriever] External knowledge retrieval failed: {e}")
            return None

    def retrieve(self, query: str, user_id: str, classification: Classification) -> ContextBundle:
        logger.info(
            f"[Retriever] memory={classification.requires_memory}, "
            f"external={classification.requires_external}, kind={classification.visualization_kind.value}"
        )

        chunks: List[ContextChunk] = []
        citations: List[Citation] = []
        sources: List[str] = []
        user_context = ""

        if classification.requires_memory:
            user_context = self._build_user_context(query, user_id)
            memories = self._search_memory(query, user_id)
            logger.info(f"[Retriever] Found {len(memories)} relevant memory chunks")
            if memories:
                sources.append("memory")
                chunks.extend(memory_to_chunk(m) for m in memories)
                citations.extend(memory_to_citation(m) for m in memories if m.metadata.topic)

        if classification.requires_external or (classification.requires_memory and not chunks):
            external = self._lookup_external(query, classification)
            if external is not None and external.chunks:
                sources.append("external")
                chunks.extend(external.chunks)
                citations.extend(external.citations)

        if not chunks:
            logger.warning("[Retriever] No context from any source, returning degraded context")
            bundle = degraded_bundle(query)
            bundle.user_context = user_context
            return bundle

        bundle = ContextBundle(
            chunks=annotate_chunks(chunks, classification.visualization_kind.value),
            citations=citations,
            strategy="+".join(sources),
            user_context=user_context,
        )
        logger.info(
            f"[Retriever] strategy={bundle.strategy}, chunks={len(bundle.chunks)}, "
            f"citations={len(bundle.citations)}"
        )
        return bundle
