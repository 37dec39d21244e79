import time
import random
from typing import Callable, Optional, Tuple, Type


class ExponentialBackoff:
    """Exponential backoff with jitter and an optional elapsed-time budget.

    next_delay() returns None once max_elapsed seconds have passed since
    reset() (or construction), which callers treat as "stop retrying".
    """
    def __init__(self, initial: float = 0.5, multiplier: float = 1.5, max_interval: float = 60.0,
                 randomization: float = 0.5, max_elapsed: Optional[float] = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        self.initial = initial
        self.multiplier = multiplier
        self.max_interval = max_interval
        self.randomization = randomization
        self.max_elapsed = max_elapsed
        self.clock = clock
        self.reset()

    def reset(self):
        self._interval = self.initial
        self._started = self.clock()

    def elapsed(self) -> float:
        return self.clock() - self._started

    def next_delay(self) -> Optional[float]:
        if self.max_elapsed is not None and self.elapsed() > self.max_elapsed:
            return None
        delta = self.randomization * self._interval
        delay = self._interval - delta + random.random() * (2 * delta)
        self._interval = min(self._interval * self.multiplier, self.max_interval)
        return delay


def retry_notify(operation: Callable, backoff: ExponentialBackoff,
                 notify: Optional[Callable[[Exception, float], None]] = None,
                 retry_on: Tuple[Type[BaseException], ...] = (Exception,),
                 sleep: Optional[Callable[[float], None]] = None):
    """Call operation until it succeeds or the backoff gives up.

    notify(error, delay) runs before every sleep. The last error is raised
    when the backoff budget is exhausted.
    """
    backoff.reset()
    while True:
        try:
            return operation()
        except retry_on as e:
            delay = backoff.next_delay()
            if delay is None:
                raise
            if notify:
                notify(e, delay)
            (sleep or time.sleep)(delay)


def retry_with_backoff(attempts: int = 3, delay: float = 0.2,
                       retry_on: Tuple[Type[BaseException], ...] = (Exception,),
                       notify: Optional[Callable[[Exception, int], None]] = None):
    """Retry decorator with exponential backoff and jitter.

    Only exceptions in retry_on are retried; anything else propagates
    on the first failure.
    """
    def decorator(fn: Callable):
        def wrapped(*args, **kwargs):
            for i in range(attempts):
                try:
                    return fn(*args, **kwargs)
                except retry_on as e:
                    if i == attempts - 1:
                        raise
                    if notify:
                        notify(e, i + 1)
                    sleep_time = delay * (2 ** i) + random.random() * 0.1
                    time.sleep(sleep_time)
        return wrapped
    return decorator
