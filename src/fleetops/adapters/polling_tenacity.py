from typing import Any, Awaitable, Callable, Optional, Sequence, Type

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)


class TenacityPollingAdapter:
    """Tenacity-based polling adapter implementing PollingPort.

    Fixed cadence, bounded attempts. An exhausted budget returns None instead
    of raising so that callers can treat timeouts as a normal outcome.
    """

    def __init__(self, sleep: Optional[Callable[[float], Awaitable[None]]] = None) -> None:
        # Injectable sleep lets tests run the cadence without wall-clock waits
        self._sleep = sleep

    async def poll_until(
        self,
        func: Callable[[], Awaitable[Any]],
        is_done: Callable[[Any], bool],
        attempts: int,
        interval: float,
        retry_on: Sequence[Type[BaseException]] = (),
    ) -> Optional[Any]:
        retry = retry_if_result(lambda value: not is_done(value))
        if retry_on:
            retry = retry | retry_if_exception_type(tuple(retry_on))

        kwargs: dict[str, Any] = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(interval),
            retry=retry,
            retry_error_callback=lambda retry_state: None,
            **kwargs,
        )
        return await retrying(func)
