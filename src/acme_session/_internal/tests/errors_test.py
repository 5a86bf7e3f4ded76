"""Tests for acme_session.errors."""
import sys
import unittest

import pytest

from acme_session._internal.tests import test_util


class MissingNonceTest(unittest.TestCase):
    """Tests for acme_session.errors.MissingNonce."""

    def setUp(self):
        from acme_session.errors import MissingNonce
        self.error = MissingNonce({'Content-Type': 'text/plain'})

    def test_str(self):
        assert 'did not include a replay nonce' in str(self.error)
        assert "'Content-Type': 'text/plain'" in str(self.error)


class AmbiguousNonceTest(unittest.TestCase):
    """Tests for acme_session.errors.AmbiguousNonce."""

    def test_str(self):
        from acme_session.errors import AmbiguousNonce
        assert "more than one replay nonce: 'a, b'" in str(AmbiguousNonce('a, b'))


class LinkFormatErrorTest(unittest.TestCase):
    """Tests for acme_session.errors.LinkFormatError."""

    def test_str(self):
        from acme_session.errors import LinkFormatError
        error = LinkFormatError('<x>', 'bad')
        assert error.value == '<x>'
        assert "Invalid Link header value ('<x>'): bad" == str(error)


class TransportErrorTest(unittest.TestCase):
    """Tests for acme_session.errors.TransportError."""

    def test_status_code(self):
        from acme_session.errors import TransportError
        response = test_util.make_response(status=503)
        assert TransportError('down', response).status_code == 503
        assert TransportError('down').status_code is None
        assert str(TransportError('down')) == 'down'


class ConfigurationErrorTest(unittest.TestCase):
    """Tests for the configuration errors."""

    def test_unknown_resource_kind(self):
        from acme_session.errors import ConfigurationError
        from acme_session.errors import UnknownResourceKind
        error = UnknownResourceKind('newThing')
        assert isinstance(error, ConfigurationError)
        assert isinstance(error, ValueError)
        assert "Unknown resource kind: 'newThing'" == str(error)

    def test_missing_endpoint(self):
        from acme_session.errors import MissingEndpoint
        assert 'Directory field "newNonce" not found' == str(MissingEndpoint('newNonce'))

    def test_timeout_is_not_client_error(self):
        from acme_session.errors import ClientError
        from acme_session.errors import TimeoutError as AcmeTimeoutError
        assert not issubclass(AcmeTimeoutError, ClientError)


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
