from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence, Type


class PollingPort(Protocol):
    """Abstract fixed-cadence polling interface.

    Implementations call `func` up to `attempts` times, sleeping `interval`
    seconds between calls, until `is_done(result)` is true. The contract keeps
    the core decoupled from a specific library (tenacity/backoff).
    """
    async def poll_until(
        self,
        func: Callable[[], Awaitable[Any]],
        is_done: Callable[[Any], bool],
        attempts: int,
        interval: float,
        retry_on: Sequence[Type[BaseException]] = (),
    ) -> Optional[Any]:  # pragma: no cover - protocol
        """Poll `func` until done or the attempt budget is spent.

        Args:
            func: Async callable fetching the current value.
            is_done: Predicate on the fetched value; true stops polling.
            attempts: Maximum number of calls to `func`.
            interval: Fixed delay in seconds between calls.
            retry_on: Exception types that count as "not done yet".
        Returns:
            The first value accepted by `is_done`, or None when the budget ran out.
        Raises:
            Any exception from `func` not listed in `retry_on`, immediately.
        """
        ...
