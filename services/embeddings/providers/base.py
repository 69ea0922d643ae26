from dataclasses import dataclass
from typing import List, Protocol

class EmbeddingsProvider(Protocol):
    def __call__(self, texts: List[str]) -> List[list[float]]:
      ...

@dataclass(frozen=True)
class EmbeddingBackend:
    """A named embedding function. Vectors may come back at any length."""
    name: str
    embed: EmbeddingsProvider
    is_network: bool = True
