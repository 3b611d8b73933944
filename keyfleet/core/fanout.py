import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Sequence, TypeVar

from keyfleet import config
from keyfleet.errors import BatchError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def fan_out(
    operation: str,
    fn: Callable[[T], R],
    items: Sequence[T],
    max_workers: int = config.MAX_CONCURRENCY,
) -> List[R]:
    """Run ``fn`` over ``items`` concurrently and return results in item order.

    The whole batch always runs to completion. If any call failed, a
    BatchError is raised afterwards, chained to the lowest-index failure.
    """
    if not items:
        return []

    results: Dict[int, R] = {}
    errors: Dict[int, BaseException] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items)))) as executor:
        futures = {executor.submit(fn, item): index for index, item in enumerate(items)}
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as exc:  # noqa: BLE001
                logger.error("%s #%d failed: %s", operation, index, exc)
                errors[index] = exc

    if errors:
        ordered = [errors[index] for index in sorted(errors)]
        raise BatchError(operation, ordered, len(items)) from ordered[0]

    return [results[index] for index in range(len(items))]
