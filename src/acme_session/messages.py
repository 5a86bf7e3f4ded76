"""ACME protocol messages handled by the session layer."""
import enum
from typing import Any
from typing import Dict
from typing import Iterator
from typing import List
from typing import Mapping
from typing import NamedTuple
from typing import Optional
from typing import Tuple
from typing import Union

import josepy as jose

from acme_session import errors

ERROR_PREFIX = "urn:ietf:params:acme:error:"

ERROR_CODES = {
    'accountDoesNotExist': 'The request specified an account that does not exist',
    'alreadyRevoked': 'The request specified a certificate to be revoked that has' \
    ' already been revoked',
    'badCSR': 'The CSR is unacceptable (e.g., due to a short key)',
    'badNonce': 'The client sent an unacceptable anti-replay nonce',
    'badPublicKey': 'The JWS was signed by a public key the server does not support',
    'badRevocationReason': 'The revocation reason provided is not allowed by the server',
    'badSignatureAlgorithm': 'The JWS was signed with an algorithm the server does not support',
    'caa': 'Certification Authority Authorization (CAA) records forbid the CA from issuing' \
    ' a certificate',
    'compound': 'Specific error conditions are indicated in the "subproblems" array',
    'connection': ('The server could not connect to the client to verify the'
                   ' domain'),
    'dns': 'There was a problem with a DNS query during identifier validation',
    'dnssec': 'The server could not validate a DNSSEC signed domain',
    'incorrectResponse': 'Response received didn\'t match the challenge\'s requirements',
    'invalidContact': 'The provided contact URI was invalid',
    'malformed': 'The request message was malformed',
    'rejectedIdentifier': 'The server will not issue certificates for the identifier',
    'orderNotReady': 'The request attempted to finalize an order that is not ready to be finalized',
    'rateLimited': 'There were too many requests of a given type',
    'serverInternal': 'The server experienced an internal error',
    'tls': 'The server experienced a TLS error during domain verification',
    'unauthorized': 'The client lacks sufficient authorization',
    'unsupportedContact': 'A contact URL for an account used an unsupported protocol scheme',
    'unknownHost': 'The server could not resolve a domain name',
    'unsupportedIdentifier': 'An identifier is of an unsupported type',
    'externalAccountRequired': 'The server requires external account binding',
}

ERROR_TYPE_DESCRIPTIONS = {
    ERROR_PREFIX + name: desc for name, desc in ERROR_CODES.items()}


def is_acme_error(err: BaseException) -> bool:
    """Check if argument is an ACME error."""
    if isinstance(err, Error) and (err.typ is not None):
        return ERROR_PREFIX in err.typ
    return False


class Error(jose.JSONObjectWithFields, errors.Error):
    """ACME error.

    https://datatracker.ietf.org/doc/html/rfc7807

    Note: Although Error inherits from JSONObjectWithFields, which is immutable,
    we add mutability for Error to comply with the Python exception API.

    :ivar str typ:
    :ivar str title:
    :ivar str detail:
    :ivar int status: HTTP status of the response that carried the error.
    :ivar tuple subproblems: An array of ACME Errors which may be present when the CA
            returns multiple errors related to the same request, `tuple` of `Error`.

    """
    typ: str = jose.field('type', omitempty=True, default='about:blank')
    title: str = jose.field('title', omitempty=True)
    detail: str = jose.field('detail', omitempty=True)
    status: Optional[int] = jose.field('status', omitempty=True)
    subproblems: Optional[Tuple['Error', ...]] = jose.field('subproblems', omitempty=True)

    # Mypy does not understand the josepy magic happening here, and falsely claims
    # that subproblems is redefined. Let's ignore the type check here.
    @subproblems.decoder  # type: ignore
    def subproblems(value: List[Dict[str, Any]]) -> Tuple['Error', ...]:  # pylint: disable=no-self-argument,missing-function-docstring
        return tuple(Error.from_json(subproblem) for subproblem in value)

    @classmethod
    def with_code(cls, code: str, **kwargs: Any) -> 'Error':
        """Create an Error instance with an ACME Error code.

        :str code: An ACME error code, like 'dnssec'.
        :kwargs: kwargs to pass to Error.

        """
        if code not in ERROR_CODES:
            raise ValueError("The supplied code: %s is not a known ACME error"
                             " code" % code)
        typ = ERROR_PREFIX + code
        return cls(typ=typ, **kwargs)

    @property
    def description(self) -> Optional[str]:
        """Hardcoded error description based on its type.

        :returns: Description if standard ACME error or ``None``.
        :rtype: str

        """
        return ERROR_TYPE_DESCRIPTIONS.get(self.typ)

    @property
    def code(self) -> Optional[str]:
        """ACME error code.

        Basically self.typ without the ERROR_PREFIX.

        :returns: error code if standard ACME code or ``None``.
        :rtype: str

        """
        code = str(self.typ).rsplit(':', maxsplit=1)[-1]
        if code in ERROR_CODES:
            return code
        return None

    # Hack to allow mutability on Errors
    def __setattr__(self, name: str, value: Any) -> None:
        return object.__setattr__(self, name, value)

    def __str__(self) -> str:
        # The server-supplied detail is the user-visible message.
        for part in (self.detail, self.title, self.description, self.typ):
            if part:
                return str(part)
        return ''


class ResourceKind(enum.Enum):
    """Directory resources, valued by their exact RFC 8555 field name."""
    NEW_NONCE = 'newNonce'
    NEW_ACCOUNT = 'newAccount'
    NEW_ORDER = 'newOrder'
    NEW_AUTHZ = 'newAuthz'
    REVOKE_CERT = 'revokeCert'
    KEY_CHANGE = 'keyChange'

    @classmethod
    def coerce(cls, kind: Union['ResourceKind', str]) -> 'ResourceKind':
        """Turn ``kind`` into a member, accepting the directory field name.

        :raises .UnknownResourceKind: if ``kind`` is not a known resource.

        """
        if isinstance(kind, cls):
            return kind
        try:
            return cls(kind)
        except (ValueError, TypeError):
            raise errors.UnknownResourceKind(kind)


class Directory(jose.JSONDeSerializable):
    """Directory.

    Directory resources must be accessed by the exact field name in RFC8555 (section 9.7.5).
    """

    class Meta(jose.JSONObjectWithFields):
        """Directory Meta."""
        _terms_of_service: str = jose.field('termsOfService', omitempty=True)
        website: str = jose.field('website', omitempty=True)
        caa_identities: List[str] = jose.field('caaIdentities', omitempty=True)
        external_account_required: bool = jose.field('externalAccountRequired', omitempty=True)

        def __init__(self, **kwargs: Any) -> None:
            kwargs = {self._internal_name(k): v for k, v in kwargs.items()}
            super().__init__(**kwargs)

        @property
        def terms_of_service(self) -> Optional[str]:
            """URL for the CA TOS"""
            return self._terms_of_service

        def __iter__(self) -> Iterator[str]:
            # When iterating over fields, use the external name 'terms_of_service' instead of
            # the internal '_terms_of_service'.
            for name in super().__iter__():
                yield name[1:] if name == '_terms_of_service' else name

        def _internal_name(self, name: str) -> str:
            return '_' + name if name == 'terms_of_service' else name

    def __init__(self, jobj: Mapping[str, Any]) -> None:
        self._jobj = dict(jobj)
        self._jobj.setdefault('meta', self.Meta())

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError as error:
            raise AttributeError(str(error))

    def __getitem__(self, name: str) -> Any:
        try:
            return self._jobj[name]
        except KeyError:
            raise KeyError(f'Directory field "{name}" not found')

    def endpoint(self, kind: Union[ResourceKind, str]) -> str:
        """URL of the endpoint serving ``kind``.

        :raises .UnknownResourceKind: if ``kind`` is not a `ResourceKind`.
        :raises .MissingEndpoint: if the server does not advertise it.

        """
        name = ResourceKind.coerce(kind).value
        url = self._jobj.get(name)
        if not url:
            raise errors.MissingEndpoint(name)
        return url

    @property
    def terms_of_service(self) -> Optional[str]:
        """URL for the CA TOS, if the server publishes one."""
        return self._jobj['meta'].terms_of_service

    def to_partial_json(self) -> Dict[str, Any]:
        return dict(self._jobj)

    @classmethod
    def from_json(cls, jobj: Mapping[str, Any]) -> 'Directory':
        if not isinstance(jobj, Mapping):
            raise jose.DeserializationError(
                'Directory must be a JSON object, got {0!r}'.format(jobj))
        jobj = dict(jobj)
        meta = jobj.pop('meta', None)
        if meta is None:
            meta = {}
        if not isinstance(meta, Mapping):
            raise jose.DeserializationError(
                'Directory meta must be a JSON object, got {0!r}'.format(meta))
        jobj['meta'] = cls.Meta.from_json(meta)
        return cls(jobj)


class ResourceEnvelope(NamedTuple):
    """Processed result of one request/response exchange.

    :ivar str location: ``Location`` header of the response, if any.
    :ivar dict links: Relation to list of URLs, in header order.
    :ivar resource: Decoded payload, ``None`` unless the response was a
        successful JSON response.

    """
    location: Optional[str]
    links: Dict[str, List[str]]
    resource: Any = None

    def link(self, relation: str) -> Optional[str]:
        """First URL registered for ``relation``, or ``None``."""
        urls = self.links.get(relation)
        return urls[0] if urls else None
