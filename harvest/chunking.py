"""
Split ordered sequences into fixed-size batches for the detail endpoint.
"""

from typing import List, Sequence, TypeVar

from core.exceptions import PreconditionError

T = TypeVar("T")

DEFAULT_CHUNK_SIZE = 20


def chunkify(items: Sequence[T], size: int = DEFAULT_CHUNK_SIZE) -> List[List[T]]:
    """
    Split ``items`` into consecutive chunks of ``size`` elements.

    Every chunk holds exactly ``size`` elements except possibly the last,
    which holds the remainder. Concatenating the chunks gives back ``items``.

    Raises:
        PreconditionError: If size is not a positive integer
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise PreconditionError(
            "Chunk size must be a positive integer",
            context={"chunk_size": size}
        )
    return [list(items[i:i + size]) for i in range(0, len(items), size)]
