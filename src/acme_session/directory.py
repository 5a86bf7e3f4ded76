"""ACME directory resolution."""
import logging
import threading
from typing import Callable
from typing import Optional
from typing import Union

import josepy as jose
import requests

from acme_session import errors
from acme_session import messages
from acme_session import response as response_util
from acme_session.nonce import NonceManager

logger = logging.getLogger(__name__)


class DirectoryResolver:
    """Fetches the server directory once and caches it.

    The first successful `resolve` wins; concurrent callers wait for it
    instead of fetching the directory themselves.

    :param str url: Directory URL.
    :param callable get: Sends a GET request to a URL and returns the
        `requests.Response`.
    :param .NonceManager nonces: Receives a nonce carried by the directory
        response, if any.

    """
    def __init__(self, url: str, get: Callable[[str], requests.Response],
                 nonces: NonceManager) -> None:
        self.url = url
        self._get = get
        self._nonces = nonces
        self._lock = threading.Lock()
        self._directory: Optional[messages.Directory] = None

    def resolve(self) -> messages.Directory:
        """Return the directory, fetching it on first use.

        :raises .TransportError: if the server does not answer with 2xx.
        :raises .ResponseDecodeError: if the body is not a directory object.

        """
        directory = self._directory
        if directory is not None:
            return directory
        with self._lock:
            if self._directory is None:
                self._directory = self._fetch()
            return self._directory

    def _fetch(self) -> messages.Directory:
        logger.debug('Fetching directory from %s', self.url)
        response = self._get(self.url)
        if not response_util.is_success(response):
            raise errors.TransportError(
                'Unable to fetch directory from {0}: HTTP {1}'.format(
                    self.url, response.status_code), response)
        try:
            directory = messages.Directory.from_json(response.json())
        except (ValueError, jose.DeserializationError) as error:
            raise errors.ResponseDecodeError(
                'Invalid directory at {0}: {1}'.format(self.url, error))

        nonce = response_util.replay_nonce(response)
        if nonce is not None:
            self._nonces.record(nonce)
        return directory

    def resource_endpoint(self, kind: Union[messages.ResourceKind, str]) -> str:
        """URL of the endpoint serving ``kind``.

        :raises .UnknownResourceKind: if ``kind`` is not a `.ResourceKind`.
        :raises .MissingEndpoint: if the directory lacks that endpoint.

        """
        kind = messages.ResourceKind.coerce(kind)
        return self.resolve().endpoint(kind)

    def terms_of_service(self) -> Optional[str]:
        """URL of the CA terms of service, if published."""
        return self.resolve().terms_of_service

    def reset(self) -> None:
        """Drop the cached directory; the next `resolve` fetches again."""
        with self._lock:
            self._directory = None
