# services/embeddings/providers/hash_embedder.py
# Deterministic, offline embedder used when no network backend is configured.

import hashlib
import re
from typing import List

import numpy as np

from services.constants import EMBEDDING_DIMENSION, HASH_EMBEDDING_NOISE_WEIGHT

_TOKEN_RE = re.compile(r"[a-z0-9]+")

def _seed_for(value: str) -> int:
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")

def _token_bucket(token: str, dimension: int) -> tuple[int, float]:
    digest = hashlib.sha256(token.encode("utf-8")).digest()
    index = int.from_bytes(digest[:4], "big") % dimension
    sign = 1.0 if digest[4] % 2 == 0 else -1.0
    return index, sign

def hash_embed_text(text: str, dimension: int = EMBEDDING_DIMENSION) -> list[float]:
    '''
        Embed one text without any network call.

        Token features are hashed into buckets so texts sharing words are
        somewhat similar. A component seeded by the SHA-256 of the exact text
        keeps distinct texts from ever mapping to the same vector.
    '''
    features = np.zeros(dimension, dtype=np.float64)
    for token in _TOKEN_RE.findall(text.lower()):
        index, sign = _token_bucket(token, dimension)
        features[index] += sign

    norm = np.linalg.norm(features)
    if norm > 0:
        features /= norm

    rng = np.random.default_rng(_seed_for(text))
    noise = rng.standard_normal(dimension)
    noise /= np.linalg.norm(noise)

    vector = (1.0 - HASH_EMBEDDING_NOISE_WEIGHT) * features + HASH_EMBEDDING_NOISE_WEIGHT * noise
    vector /= np.linalg.norm(vector)
    return vector.tolist()

def embed_texts_hash(texts: List[str]) -> List[list[float]]:
    return [hash_embed_text(text) for text in texts]
