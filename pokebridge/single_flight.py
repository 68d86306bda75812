"""
Collapse concurrent identical calls into one execution
"""
import logging
import threading
from typing import Any, Callable, Dict, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class _Call:
    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None


class SingleFlight:
    """
    While a call for a key is running, other threads asking for the
    same key wait for it and share its result (or its exception)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: Dict[str, _Call] = {}

    def do(self, key: str, function: Callable[[], T]) -> T:
        """
        Run function once per in-flight key
        :param key: De-duplication key
        :param function: Work to run
        :return Result of the (possibly shared) call
        """
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = self._calls[key] = _Call()

        if not leader:
            LOGGER.debug(f"Joining in-flight call for {key}")
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.result

        try:
            call.result = function()
        except BaseException as error:
            call.error = error
            raise
        finally:
            with self._lock:
                del self._calls[key]
            call.done.set()

        return call.result
