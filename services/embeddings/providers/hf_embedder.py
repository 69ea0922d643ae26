# services/embeddings/providers/hf_embedder.py
from functools import lru_cache
from typing import List
from sentence_transformers import SentenceTransformer
from services.constants import HF_EMBEDDING_MODEL

@lru_cache(maxsize=1)
def _load_model(model_name: str = HF_EMBEDDING_MODEL) -> SentenceTransformer:
    return SentenceTransformer(model_name)

def embed_texts_hf(texts: List[str]) -> List[list[float]]:
    """
    Embed texts using SentenceTransformers MiniLM (local model).
    Returns list of embeddings (384-dim each), padded to the canonical
    dimension by the EmbeddingProvider.
    """
    embs = _load_model().encode(texts, batch_size=32, show_progress_bar=False)
    return [emb.tolist() for emb in embs]
