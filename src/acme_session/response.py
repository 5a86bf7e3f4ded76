"""Interpretation of ACME server responses."""
import logging
from typing import Any
from typing import Optional
from typing import Type

import josepy as jose
import requests

from acme_session import errors
from acme_session import links
from acme_session import messages
from acme_session.nonce import NonceManager

logger = logging.getLogger(__name__)

JSON_ERROR_CONTENT_TYPE = 'application/problem+json'
REPLAY_NONCE_HEADER = 'Replay-Nonce'
LINK_HEADER = 'Link'
LOCATION_HEADER = 'Location'


def is_success(response: requests.Response) -> bool:
    """Whether the response status is 2xx."""
    return 200 <= response.status_code < 300


def media_type(response: requests.Response) -> Optional[str]:
    """``Content-Type`` of the response without parameters, lowercased."""
    content_type = response.headers.get('Content-Type')
    if not content_type:
        return None
    # Strip parameters from the media-type (rfc2616#section-3.7)
    return content_type.split(';')[0].strip().lower()


def is_json_media_type(value: Optional[str]) -> bool:
    """Whether ``value`` is ``application/json`` or ``application/*+json``."""
    if not value or '/' not in value:
        return False
    typ, subtype = value.split('/', 1)
    return typ == 'application' and (subtype == 'json' or subtype.endswith('+json'))


def replay_nonce(response: requests.Response) -> Optional[str]:
    """Replay nonce carried by ``response``, if any.

    :raises .AmbiguousNonce: if the response carries more than one value.
        Repeated headers arrive folded into one comma separated value.

    """
    header = response.headers.get(REPLAY_NONCE_HEADER)
    if header is None:
        return None
    values = [value.strip() for value in header.split(',') if value.strip()]
    if not values:
        return None
    if len(values) > 1:
        raise errors.AmbiguousNonce(header)
    return values[0]


class ResponseProcessor:
    """Turns raw responses into `.ResourceEnvelope` objects.

    :param .NonceManager nonces: Receives every replay nonce seen.

    """
    def __init__(self, nonces: NonceManager) -> None:
        self._nonces = nonces

    def process(self, response: requests.Response,
                resource_cls: Optional[Type[jose.JSONDeSerializable]] = None
                ) -> messages.ResourceEnvelope:
        """Process ``response``.

        :param requests.Response response: Server response.
        :param resource_cls: Class used to decode a successful JSON body,
            ``None`` to return the decoded JSON as is.

        :returns: Envelope with location, links and decoded resource.
        :rtype: `.ResourceEnvelope`

        :raises .messages.Error: if the server answered with an HTTP
            Problem (https://datatracker.ietf.org/doc/html/rfc7807).
        :raises .TransportError: if the server failed without one.
        :raises .LinkFormatError: if a ``Link`` header is malformed.
        :raises .ResponseDecodeError: if a JSON body does not decode.

        """
        location = response.headers.get(LOCATION_HEADER)

        nonce = replay_nonce(response)
        if nonce is not None:
            self._nonces.record(nonce)

        link_header = response.headers.get(LINK_HEADER)
        resource_links = links.parse_links([link_header]) if link_header else {}

        response_ct = media_type(response)
        if not is_json_media_type(response_ct):
            if not is_success(response):
                raise errors.TransportError(
                    'Server responded with HTTP {0} and no error document'.format(
                        response.status_code), response)
            return messages.ResourceEnvelope(location, resource_links)

        if is_success(response):
            resource = self._decode(response, resource_cls)
            return messages.ResourceEnvelope(location, resource_links, resource)

        raise self._error(response, response_ct)

    @classmethod
    def _decode(cls, response: requests.Response,
                resource_cls: Optional[Type[jose.JSONDeSerializable]]) -> Any:
        if not response.content:
            return None
        try:
            jobj = response.json()
        except ValueError as error:
            raise errors.ResponseDecodeError(
                'Response body is not valid JSON: {0}'.format(error))
        if resource_cls is None:
            return jobj
        try:
            return resource_cls.from_json(jobj)
        except jose.DeserializationError as error:
            raise errors.ResponseDecodeError(
                'Unable to decode {0}: {1}'.format(resource_cls.__name__, error))

    @classmethod
    def _error(cls, response: requests.Response, response_ct: str) -> Exception:
        if response_ct != JSON_ERROR_CONTENT_TYPE:
            logger.debug('Ignoring wrong Content-Type (%r) for JSON Error', response_ct)
        try:
            jobj = response.json()
            if not isinstance(jobj, dict):
                raise jose.DeserializationError(
                    'expected a JSON object, got {0!r}'.format(jobj))
            error = messages.Error.from_json(jobj)
        except (ValueError, TypeError, jose.DeserializationError) as decode_error:
            # Couldn't deserialize JSON object
            return errors.TransportError(
                'Server responded with HTTP {0} and an unreadable error document: '
                '{1}'.format(response.status_code, decode_error), response)
        if error.status is None:
            error.status = response.status_code
        return error
