# services/embeddings/__init__.py
import logging
from typing import Optional
from .providers.base import EmbeddingBackend, EmbeddingsProvider
from .providers.hash_embedder import embed_texts_hash
from .provider import EmbeddingProvider, normalize_dimension
from services.constants import EMBED_PROVIDER, OPENAI_API_KEY

logger = logging.getLogger(__name__)

HASH_BACKEND = EmbeddingBackend(name="hash", embed=embed_texts_hash, is_network=False)

def get_embedding_backend(provider: Optional[str] = None) -> EmbeddingBackend:
    """
    Factory function to get the embedding backend based on configuration.
    A network provider without credentials resolves to the offline hash backend.
    """
    provider = (provider or EMBED_PROVIDER).lower()

    if provider == "openai":
        if not OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY not set, using deterministic offline embeddings")
            return HASH_BACKEND
        from .providers.openai_embedder import embed_texts_openai
        return EmbeddingBackend(name="openai", embed=embed_texts_openai)
    elif provider == "hf":
        # Local model, imported lazily because sentence-transformers pulls in torch
        from .providers.hf_embedder import embed_texts_hf
        return EmbeddingBackend(name="hf", embed=embed_texts_hf, is_network=False)
    elif provider == "hash":
        return HASH_BACKEND
    else:
        raise ValueError(f"Unknown EMBED_PROVIDER={provider}")

def get_embedder(provider: Optional[str] = None) -> EmbeddingProvider:
    return EmbeddingProvider(get_embedding_backend(provider))

__all__ = [
    'EmbeddingBackend',
    'EmbeddingProvider',
    'EmbeddingsProvider',
    'HASH_BACKEND',
    'get_embedder',
    'get_embedding_backend',
    'normalize_dimension',
]
