"""Batching utilities for paced provider requests."""

import asyncio
from typing import Awaitable, Callable, Iterator, List, Sequence, TypeVar, Union

from solana_portfolio.utils.resilience import pace

# Type variables for generic types
T = TypeVar('T')  # Input type
R = TypeVar('R')  # Result type


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """
    Split a sequence into consecutive chunks of at most ``size`` items.

    Args:
        items: Items to split
        size: Maximum chunk length

    Yields:
        Lists of items, in input order
    """
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


async def settle_in_batches(
    processor: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    batch_size: int,
    pause: float = 0.0
) -> List[Union[R, BaseException]]:
    """
    Process items in sequential batches, pausing between batches.

    Items inside one batch run concurrently. A failing item does not affect
    the others: its exception takes its place in the result list.

    Args:
        processor: Async function to process each item
        items: Items to process
        batch_size: Maximum number of items per batch
        pause: Delay between consecutive batches, in seconds

    Returns:
        One result or exception per item, in the same order as the input
    """
    results: List[Union[R, BaseException]] = []
    for index, batch in enumerate(chunked(items, batch_size)):
        if index > 0:
            await pace(pause)
        batch_results = await asyncio.gather(*[processor(item) for item in batch], return_exceptions=True)
        results.extend(batch_results)
    return results
