# minimal, stateless embedder
from typing import List, Optional
from openai import OpenAI
from services.constants import DEFAULT_EMBEDDING_MODEL, OPENAI_API_KEY

_client: Optional[OpenAI] = None

def _get_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=OPENAI_API_KEY or None, max_retries=0)
    return _client

def embed_texts_openai(texts: List[str], model: str = DEFAULT_EMBEDDING_MODEL) -> List[list[float]]:

    # OpenAI accepts a list of strings; response.data is aligned to inputs
    resp = _get_client().embeddings.create(model=model, input=texts)
    return [d.embedding for d in resp.data]
