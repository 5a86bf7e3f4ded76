"""Anti-replay nonce bookkeeping."""
import logging
import threading
from typing import Callable
from typing import Optional

logger = logging.getLogger(__name__)


class NonceManager:
    """Holds at most one unused replay nonce.

    A nonce handed out by `consume` is never handed out again. `record`
    and `consume` exclude each other; the lock is never held while a
    fresh nonce is fetched from the server.

    :param callable fetch: Requests a fresh nonce from the server and
        returns it. Expected to raise if the server does not supply one.

    """
    def __init__(self, fetch: Callable[[], str]) -> None:
        self._fetch = fetch
        self._lock = threading.Lock()
        self._nonce: Optional[str] = None

    def consume(self) -> str:
        """Take the current nonce, fetching one if none is held."""
        while True:
            with self._lock:
                nonce, self._nonce = self._nonce, None
            if nonce is not None:
                return nonce
            logger.debug('Requesting fresh nonce')
            # Another consumer may take the fetched nonce before we get to
            # it; every empty observation costs exactly one fetch.
            self.record(self._fetch())

    def record(self, nonce: str) -> None:
        """Store ``nonce``, replacing any nonce currently held."""
        logger.debug('Storing nonce: %s', nonce)
        with self._lock:
            self._nonce = nonce

    def clear(self) -> None:
        """Forget the held nonce, if any."""
        with self._lock:
            self._nonce = None

    @property
    def available(self) -> bool:
        """Whether a nonce is held right now."""
        with self._lock:
            return self._nonce is not None
