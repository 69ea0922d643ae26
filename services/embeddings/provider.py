"""
provider.py
Embedding provider: wraps one backend and normalizes every vector to the
canonical dimension.
"""

import logging
import time
from typing import Any, Callable, Dict, List

import numpy as np

from services.constants import (
    EMBEDDING_DIMENSION,
    EMBEDDING_PAD_SCALE,
    EMBED_BATCH_SIZE,
    EMBED_BATCH_DELAY_SECONDS,
)
from services.embeddings.providers.base import EmbeddingBackend

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def normalize_dimension(vector: List[float], dimension: int = EMBEDDING_DIMENSION) -> List[float]:
    '''
        Bring a vector to the canonical dimension and L2-normalize it.

        Longer vectors are truncated. Shorter vectors are right-padded with
        values interpolated from the vector itself (the scaled mean of two
        neighbouring components, wrapping around), never with zeros.
    '''
    values = np.asarray(vector, dtype=np.float64)
    if values.size == 0:
        raise ValueError("Cannot normalize an empty embedding")

    if values.size > dimension:
        values = values[:dimension]
    elif values.size < dimension:
        original_size = values.size
        missing = dimension - original_size
        positions = np.arange(missing) % original_size
        neighbours = (positions + 1) % original_size
        padding = EMBEDDING_PAD_SCALE * (values[positions] + values[neighbours]) / 2.0
        values = np.concatenate([values, padding])

    magnitude = np.linalg.norm(values)
    if magnitude > 0:
        values = values / magnitude
    return values.tolist()


def random_unit_vector(dimension: int = EMBEDDING_DIMENSION) -> List[float]:
    '''
        Random normalized vector used in place of a failed batch item.
    '''
    values = np.random.default_rng().uniform(-1.0, 1.0, dimension)
    return (values / np.linalg.norm(values)).tolist()


class EmbeddingProvider:
    """Text to canonical-length vectors through a single configured backend."""

    def __init__(
        self,
        backend: EmbeddingBackend,
        dimension: int = EMBEDDING_DIMENSION,
        batch_size: int = EMBED_BATCH_SIZE,
        batch_delay_seconds: float = EMBED_BATCH_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.backend = backend
        self.dimension = dimension
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep

    def embed(self, text: str) -> List[float]:
        '''
            Embed a single text. Backend errors propagate to the caller.
        '''
        vectors = self.backend.embed([text])
        if not vectors:
            raise ValueError(f"Embedding backend '{self.backend.name}' returned no vector")
        return normalize_dimension(vectors[0], self.dimension)

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        '''
            Embed many texts, preserving order and cardinality.

            Texts are processed in small sequential groups with a delay between
            groups. An item that fails is replaced by a random unit vector, so
            this method never raises for a per-item failure.
        '''
        results: List[List[float]] = []
        for start in range(0, len(texts), self.batch_size):
            group = texts[start:start + self.batch_size]
            for offset, text in enumerate(group):
                try:
                    results.append(self.embed(text))
                except Exception as e:
                    logger.warning(
                        f"[embed_batch] Item {start + offset} failed on '{self.backend.name}', "
                        f"using random fallback vector: {e}"
                    )
                    results.append(random_unit_vector(self.dimension))

            if start + self.batch_size < len(texts) and self.batch_delay_seconds > 0:
                self._sleep(self.batch_delay_seconds)

        return results

    def describe(self) -> Dict[str, Any]:
        return {
            "backend": self.backend.name,
            "dimension": self.dimension,
            "is_network": self.backend.is_network,
        }

    def test_connection(self) -> bool:
        try:
            self.embed("test")
            return True
        except Exception:
            logger.exception(f"[test_connection] Embedding backend '{self.backend.name}' is not reachable")
            return False
