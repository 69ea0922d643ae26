"""
Shared fakes and fixtures. Nothing in the test suite touches the network.
"""

from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np
import pytest

from services.ai_workflow.data_model import Citation
from services.ai_workflow.orchestrator import DashboardPipeline, build_pipeline
from services.ai_workflow.utils.content_services import ContentResult
from services.embeddings import HASH_BACKEND, EmbeddingProvider
from services.errors import TransientBackendError
from services.memory.user_memory import UserMemoryStore
from services.vectorstores.pinecone_store import VectorMatch


class FakeVectorStore:
    """In-memory vector store with Pinecone-style $eq filtering on metadata."""

    def __init__(self, available: bool = True, fail: bool = False, ignore_filter: bool = False):
        self.available = available
        self.fail = fail
        self.ignore_filter = ignore_filter
        self.records: Dict[str, Dict[str, Any]] = {}
        self.queries: List[Dict[str, Any]] = []

    def is_available(self) -> bool:
        return self.available

    def upsert(self, id: str, vector: List[float], metadata: Dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("vector store unreachable")
        self.records[id] = {"vector": np.asarray(vector), "metadata": dict(metadata)}

    def _matches_filter(self, metadata: Dict[str, Any], metadata_filter: Optional[Dict[str, Any]]) -> bool:
        if self.ignore_filter or not metadata_filter:
            return True
        for key, condition in metadata_filter.items():
            if metadata.get(key) != condition.get("$eq"):
                return False
        return True

    def query(
        self,
        vector: List[float],
        top_k: int,
        metadata_filter: Optional[Dict[str, Any]] = None,
        include_metadata: bool = True,
    ) -> List[VectorMatch]:
        if self.fail:
            raise ConnectionError("vector store unreachable")
        self.queries.append({"top_k": top_k, "filter": metadata_filter})

        query_vector = np.asarray(vector)
        matches = [
            VectorMatch(id=id, score=float(np.dot(query_vector, record["vector"])), metadata=record["metadata"])
            for id, record in self.records.items()
            if self._matches_filter(record["metadata"], metadata_filter)
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]


class FakeChat:
    """
    Chat client returning canned responses per intent.
    A response may be a string, an exception to raise, or a callable taking the messages.
    """

    def __init__(self, responses: Optional[Dict[str, Union[str, Exception, Callable]]] = None, available: bool = True):
        self.responses = responses or {}
        self.available = available
        self.calls: List[Dict[str, Any]] = []

    def is_available(self) -> bool:
        return self.available

    def complete(self, messages, intent, response_format="text", temperature=0.2) -> str:
        self.calls.append({
            "messages": messages,
            "intent": intent,
            "response_format": response_format,
            "temperature": temperature,
        })
        response = self.responses.get(intent)
        if response is None:
            raise TransientBackendError(f"No fake response for intent '{intent}'")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(messages)
        return response


class FakeContentBackend:
    def __init__(
        self,
        name: str,
        heading: str,
        content: str = "",
        sources: Optional[List[Citation]] = None,
        available: bool = True,
        error: Optional[Exception] = None,
    ):
        self.name = name
        self.heading = heading
        self.content = content
        self.sources = sources or []
        self.available = available
        self.error = error
        self.queries: List[str] = []

    def is_available(self) -> bool:
        return self.available

    def generate(self, query: str) -> ContentResult:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return ContentResult(content=self.content, sources=list(self.sources))


class FailingKnowledgeSource:
    def lookup(self, query, classification):
        raise ConnectionError("knowledge source down")


@pytest.fixture
def embedder() -> EmbeddingProvider:
    return EmbeddingProvider(HASH_BACKEND, sleep=lambda seconds: None)


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def memory_store(vector_store: FakeVectorStore, embedder: EmbeddingProvider) -> UserMemoryStore:
    return UserMemoryStore(vector_store, embedder)


@pytest.fixture
def offline_chat() -> FakeChat:
    return FakeChat(available=False)


@pytest.fixture
def offline_pipeline(offline_chat: FakeChat, embedder: EmbeddingProvider, vector_store: FakeVectorStore) -> DashboardPipeline:
    """Pipeline with every AI backend switched off and an in-memory vector store."""
    return build_pipeline(
        chat=offline_chat,
        embedder=embedder,
        vector_store=vector_store,
        content_backends=[],
    )
