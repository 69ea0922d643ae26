import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Protocol
from pinecone import Pinecone

from services.constants import PINECONE_API_KEY, PINECONE_INDEX_NAME, PINECONE_NAMESPACE

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@dataclass
class VectorMatch:
    """One ranked match returned by a vector query."""
    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class VectorStore(Protocol):
    def is_available(self) -> bool:
        ...

    def upsert(self, id: str, vector: List[float], metadata: Dict[str, Any]) -> None:
        ...

    def query(
        self,
        vector: List[float],
        top_k: int,
        metadata_filter: Optional[Dict[str, Any]] = None,
        include_metadata: bool = True,
    ) -> List[VectorMatch]:
        ...


class PineconeStore:
    """
    Pinecone-backed vector store for user memories.

    The client and index handle are created on first use. Without an API key
    the store reports itself unavailable and callers are expected to degrade.
    """

    def __init__(
        self,
        api_key: str = PINECONE_API_KEY,
        index_name: str = PINECONE_INDEX_NAME,
        namespace: str = PINECONE_NAMESPACE,
    ):
        self.api_key = api_key
        self.index_name = index_name
        self.namespace = namespace
        self._index = None

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _get_index(self):
        if self._index is None:
            pc = Pinecone(api_key=self.api_key)
            self._index = pc.Index(name=self.index_name)
            logger.info(f"Connected to Pinecone index '{self.index_name}' in namespace '{self.namespace}'")
        return self._index

    def upsert(self, id: str, vector: List[float], metadata: Dict[str, Any]) -> None:
        """
        Upsert one record into Pinecone.

        Args:
            id: Record id
            vector: Embedding values (already at the index dimension)
            metadata: Flat metadata dict. Values must be strings, numbers,
                      booleans or lists of strings.
        """
        try:
            self._get_index().upsert(
                vectors=[{"id": id, "values": vector, "metadata": metadata}],
                namespace=self.namespace,
            )
            logger.info(f"Upserted record '{id}' into '{self.index_name}'")

        except Exception as e:
            logger.exception(f"[upsert] Failed to upsert record: {id}")
            raise e

    def query(
        self,
        vector: List[float],
        top_k: int,
        metadata_filter: Optional[Dict[str, Any]] = None,
        include_metadata: bool = True,
    ) -> List[VectorMatch]:
        """
        Query by vector similarity with optional metadata filtering.

        Examples:
            # Only one user's records
            store.query(vec, top_k=10, metadata_filter={"userId": {"$eq": "user-1"}})

            Refer to documentation at:
            https://docs.pinecone.io/guides/search/filter-by-metadata

        Returns:
            Matches ranked by descending score
        """
        try:
            resp = self._get_index().query(
                vector=vector,
                top_k=top_k,
                filter=metadata_filter or None,
                include_metadata=include_metadata,
                namespace=self.namespace,
            )

            matches = getattr(resp, "matches", None)
            if matches is None and isinstance(resp, dict):
                matches = resp.get("matches", [])

            results = []
            for match in matches or []:
                if isinstance(match, dict):
                    results.append(VectorMatch(
                        id=str(match.get("id", "")),
                        score=float(match.get("score") or 0.0),
                        metadata=dict(match.get("metadata") or {}),
                    ))
                else:
                    results.append(VectorMatch(
                        id=str(match.id),
                        score=float(match.score or 0.0),
                        metadata=dict(match.metadata or {}),
                    ))
            return results

        except Exception as e:
            logger.exception(f"[query] Failed to query index '{self.index_name}' with filter: {metadata_filter}")
            raise e
