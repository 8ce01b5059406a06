"""
Bounded regeneration
=====================
Generic "validate, regenerate on failure" loop for externally produced
values (links suggested by a model, fetched documents, ...).

    @regenerate_until_valid(validate=is_reachable, max_retries=2)
    async def replace(rejected, attempt, **ctx):
        return await ask_model_for_another(rejected, **ctx)

    value = await replace(first_candidate, topic="docker")

The wrapper returns the first candidate that validates, or None once
`max_retries` regenerations have been spent. A regeneration that fails
with a MatcherError counts as a spent attempt.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .errors import MatcherError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def regenerate_until_valid(
    validate: Callable[[Any], Awaitable[bool]],
    max_retries: int = 2,
):
    def decorator(regenerate: Callable[..., Awaitable[Optional[T]]]):
        @functools.wraps(regenerate)
        async def wrapper(candidate: Optional[T], *args, **kwargs) -> Optional[T]:
            rejected = candidate
            for attempt in range(max_retries + 1):
                if candidate is not None and await validate(candidate):
                    if attempt:
                        logger.info(f"{regenerate.__name__}: valid after {attempt} regeneration(s)")
                    return candidate
                if candidate is not None:
                    rejected = candidate
                if attempt == max_retries:
                    break
                try:
                    candidate = await regenerate(rejected, attempt + 1, *args, **kwargs)
                except MatcherError as e:
                    logger.warning(f"{regenerate.__name__}: regeneration {attempt + 1} failed: {e.message}")
                    candidate = None
            logger.info(f"{regenerate.__name__}: giving up after {max_retries} regeneration(s)")
            return None

        return wrapper

    return decorator
