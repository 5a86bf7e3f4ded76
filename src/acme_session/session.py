"""ACME session: directory, nonce and response handling over HTTP."""
import base64
import json
import logging
import re
from typing import Any
from typing import Optional
from typing import Type
from typing import Union

import josepy as jose
import requests
from requests.adapters import HTTPAdapter

from acme_session import errors
from acme_session import messages
from acme_session import response as response_util
from acme_session import servers
from acme_session.directory import DirectoryResolver
from acme_session.nonce import NonceManager
from acme_session.response import ResponseProcessor

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_TIMEOUT = 45
DEFAULT_USER_AGENT = 'acme-session'


class AcmeSession:
    """Session with one ACME server.

    Resolves the server directory on first use, keeps the replay nonce
    required by every POST and turns responses into
    `.ResourceEnvelope` objects. Payloads are signed elsewhere: the
    signer calls `resource_endpoint` and `consume_nonce`, then hands the
    signed message to `post`.

    Requests are never retried. A caller that gets a ``badNonce``
    `.messages.Error` back is expected to sign again with a fresh nonce.

    :param str directory_url: URL of the server directory.
    :param requests.Session http: Transport used for every request. When
        omitted, the session creates one and closes it in `close`.
    :param str user_agent: String to send as User-Agent header.
    :param bool verify_ssl: Whether to verify certificates on SSL connections.
    :param int timeout: Timeout for requests, in seconds.

    """
    JOSE_CONTENT_TYPE = 'application/jose+json'

    def __init__(self, directory_url: str = servers.LETS_ENCRYPT_V2,
                 http: Optional[requests.Session] = None,
                 user_agent: str = DEFAULT_USER_AGENT, verify_ssl: bool = True,
                 timeout: int = DEFAULT_NETWORK_TIMEOUT) -> None:
        self.user_agent = user_agent
        self.verify_ssl = verify_ssl
        self._default_timeout = timeout
        self._owns_http = http is None
        if http is None:
            http = requests.Session()
            adapter = HTTPAdapter()
            http.mount("http://", adapter)
            http.mount("https://", adapter)
        self.http = http

        self.nonces = NonceManager(self._fetch_nonce)
        self.resolver = DirectoryResolver(
            directory_url, lambda url: self._send_request('GET', url), self.nonces)
        self.processor = ResponseProcessor(self.nonces)

    def __enter__(self) -> 'AcmeSession':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if this session created it."""
        if self._owns_http:
            self.http.close()

    @property
    def directory_url(self) -> str:
        """URL of the server directory."""
        return self.resolver.url

    def directory(self) -> messages.Directory:
        """Server directory, fetched on first use."""
        return self.resolver.resolve()

    def terms_of_service(self) -> Optional[str]:
        """URL of the CA terms of service, if published."""
        return self.resolver.terms_of_service()

    def resource_endpoint(self, kind: Union[messages.ResourceKind, str]) -> str:
        """URL of the directory endpoint for ``kind``.

        :raises .UnknownResourceKind: if ``kind`` is not a `.ResourceKind`.
        :raises .MissingEndpoint: if the server does not advertise it.

        """
        return self.resolver.resource_endpoint(kind)

    def consume_nonce(self) -> str:
        """Hand out a replay nonce that has not been handed out before."""
        return self.nonces.consume()

    def reset(self) -> None:
        """Forget the directory and the held nonce."""
        self.resolver.reset()
        self.nonces.clear()

    def get(self, url: str, resource_cls: Optional[Type[jose.JSONDeSerializable]] = None
            ) -> messages.ResourceEnvelope:
        """Send GET request and process the response.

        :param str url: Resource URL.
        :param resource_cls: Class to decode a JSON body with.

        :rtype: `.ResourceEnvelope`

        """
        return self.processor.process(self._send_request('GET', url), resource_cls)

    def post(self, url: str, payload: Any,
             resource_cls: Optional[Type[jose.JSONDeSerializable]] = None
             ) -> messages.ResourceEnvelope:
        """POST an already signed payload and process the response.

        :param str url: Resource URL.
        :param payload: Signed message: a josepy object (for example a
            `josepy.JWS`), its serialized form as `str` or `bytes`, or a
            JSON-serializable object.
        :param resource_cls: Class to decode a JSON body with.

        :rtype: `.ResourceEnvelope`

        """
        data = self._serialize(payload)
        response = self._send_request(
            'POST', url, data=data, headers={'Content-Type': self.JOSE_CONTENT_TYPE})
        return self.processor.process(response, resource_cls)

    @classmethod
    def _serialize(cls, payload: Any) -> Union[str, bytes]:
        if isinstance(payload, (str, bytes)):
            return payload
        if isinstance(payload, jose.JSONDeSerializable):
            return payload.json_dumps()
        return json.dumps(payload, separators=(',', ':'))

    def _fetch_nonce(self) -> str:
        new_nonce_url = self.resource_endpoint(messages.ResourceKind.NEW_NONCE)
        response = self._send_request('HEAD', new_nonce_url)
        if not response_util.is_success(response):
            raise errors.TransportError(
                'Unable to fetch nonce from {0}: HTTP {1}'.format(
                    new_nonce_url, response.status_code), response)
        nonce = response_util.replay_nonce(response)
        if nonce is None:
            raise errors.MissingNonce(response.headers)
        return nonce

    def _send_request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Send HTTP request.

        Makes sure that `verify_ssl` and the timeout are respected. Logs
        request and response (with headers).

        :param str method: HTTP method
        :param str url: Request URL

        :raises .TimeoutError: if the server did not answer in time.
        :raises .TransportError: in case of any other transport problem.

        :returns: HTTP Response
        :rtype: `requests.Response`

        """
        if method == "POST":
            logger.debug('Sending POST request to %s:\n%s', url, kwargs['data'])
        else:
            logger.debug('Sending %s request to %s.', method, url)
        kwargs['verify'] = self.verify_ssl
        kwargs.setdefault('headers', {})
        kwargs['headers'].setdefault('User-Agent', self.user_agent)
        kwargs.setdefault('timeout', self._default_timeout)
        try:
            response = self.http.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise errors.TimeoutError(f"Request to {url} timed out") from e
        except requests.exceptions.RequestException as e:
            # The requests library emits exceptions with a lot of extra text,
            # e.g. "HTTPSConnectionPool(host='example.com', port=443): Max
            # retries exceeded with url: /directory (Caused by
            # NewConnectionError('...: Failed to establish a new connection:
            # [Errno 65] No route to host'))"
            err_regex = r".*host='(\S*)'.*Max retries exceeded with url\: (\/\w*).*(\[Errno \d+\])([A-Za-z ]*)"
            m = re.match(err_regex, str(e))
            if m is None:
                raise errors.TransportError(f"Requesting {url}: {e}") from e
            host, path, _err_no, err_msg = m.groups()
            raise errors.TransportError(f"Requesting {host}{path}:{err_msg}") from e

        debug_content: Union[bytes, str]
        if response_util.is_json_media_type(response_util.media_type(response)):
            # JSON is UTF-8 (RFC 8259); keep requests from guessing.
            response.encoding = "utf-8"
            debug_content = response.text
        else:
            # Certificates and other binary bodies stay out of the logs as raw bytes.
            debug_content = base64.b64encode(response.content)
        logger.debug('Received response:\nHTTP %d\n%s\n\n%s',
                     response.status_code,
                     "\n".join("{0}: {1}".format(k, v)
                               for k, v in response.headers.items()),
                     debug_content)
        return response
