"""
providers.py
Ordered provider chains used by every stage for its fallbacks.

A stage lists its providers by priority (AI first, deterministic last) and
takes the first one that is available and produces a result.
"""

import logging
from typing import Any, Optional, Protocol, Sequence, Tuple, TypeVar

from services.errors import ProviderChainExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Provider(Protocol[T_co]):
    name: str

    def is_available(self) -> bool:
        ...

    def produce(self, *args: Any, **kwargs: Any) -> Optional[T_co]:
        ...


class AlwaysAvailable:
    """Mixin for deterministic providers with no external dependency."""

    def is_available(self) -> bool:
        return True


def run_provider_chain(
    stage: str,
    providers: Sequence[Provider[T]],
    *args: Any,
    **kwargs: Any,
) -> Tuple[T, str]:
    """
    Run providers in order and return the first usable result.

    A provider is skipped when it is unavailable, raises, or returns None.

    Returns:
        (result, name of the provider that produced it)
    """
    for provider in providers:
        try:
            if not provider.is_available():
                logger.info(f"[{stage}] Provider '{provider.name}' unavailable, skipping")
                continue
        except Exception as e:
            logger.warning(f"[{stage}] Availability check of '{provider.name}' failed: {e}")
            continue

        try:
            result = provider.produce(*args, **kwargs)
        except Exception as e:
            logger.warning(f"[{stage}] Provider '{provider.name}' failed, falling back: {e}")
            continue

        if result is None:
            logger.info(f"[{stage}] Provider '{provider.name}' produced nothing, falling back")
            continue

        return result, provider.name

    raise ProviderChainExhaustedError(stage)
