"""Tests for acme_session.directory."""
import sys
import threading
import unittest
from unittest import mock

import pytest

from acme_session import errors
from acme_session import messages
from acme_session._internal.tests import test_util


class DirectoryResolverTest(unittest.TestCase):
    """Tests for acme_session.directory.DirectoryResolver."""

    def setUp(self):
        self.response = test_util.make_response(
            body=test_util.DIRECTORY, headers={'Replay-Nonce': 'dir-nonce'})
        self.get = mock.MagicMock(return_value=self.response)
        self.nonces = mock.MagicMock()

        from acme_session.directory import DirectoryResolver
        self.resolver = DirectoryResolver(test_util.DIRECTORY_URL, self.get, self.nonces)

    def test_resolve(self):
        directory = self.resolver.resolve()
        assert isinstance(directory, messages.Directory)
        assert directory['newOrder'] == test_util.DIRECTORY['newOrder']
        self.get.assert_called_once_with(test_util.DIRECTORY_URL)

    def test_resolve_is_idempotent(self):
        assert self.resolver.resolve() is self.resolver.resolve()
        assert self.resolver.terms_of_service() == 'https://acme.example.test/terms'
        assert self.resolver.terms_of_service() == 'https://acme.example.test/terms'
        assert self.get.call_count == 1

    def test_resolve_primes_nonce(self):
        self.resolver.resolve()
        self.nonces.record.assert_called_once_with('dir-nonce')

    def test_resolve_without_nonce(self):
        self.response.headers.pop('Replay-Nonce')
        self.resolver.resolve()
        self.nonces.record.assert_not_called()

    def test_resolve_failure_status(self):
        self.get.return_value = test_util.make_response(
            status=500, body=b'oops', headers={'Content-Type': 'text/plain'})
        with pytest.raises(errors.TransportError) as info:
            self.resolver.resolve()
        assert info.value.status_code == 500
        assert test_util.DIRECTORY_URL in str(info.value)

    def test_resolve_failure_is_not_cached(self):
        self.get.side_effect = [
            test_util.make_response(status=503, body=b''),
            self.response,
        ]
        with pytest.raises(errors.TransportError):
            self.resolver.resolve()
        assert self.resolver.resolve()['newNonce'] == test_util.DIRECTORY['newNonce']
        assert self.get.call_count == 2

    def test_resolve_not_json(self):
        self.get.return_value = test_util.make_response(
            body=b'<html></html>', headers={'Content-Type': 'text/html'})
        with pytest.raises(errors.ResponseDecodeError):
            self.resolver.resolve()

    def test_resolve_not_an_object(self):
        self.get.return_value = test_util.make_response(body=['newNonce'])
        with pytest.raises(errors.ResponseDecodeError):
            self.resolver.resolve()

    def test_resolve_null_meta(self):
        self.get.return_value = test_util.make_response(body=dict(test_util.DIRECTORY, meta=None))
        assert self.resolver.terms_of_service() is None

    def test_resolve_meta_not_an_object(self):
        for meta in (['termsOfService'], 'https://acme.example.test/terms', 5):
            self.resolver.reset()
            self.get.return_value = test_util.make_response(
                body=dict(test_util.DIRECTORY, meta=meta))
            with pytest.raises(errors.ResponseDecodeError):
                self.resolver.resolve()

    def test_resource_endpoint(self):
        for kind in messages.ResourceKind:
            assert self.resolver.resource_endpoint(kind) == test_util.DIRECTORY[kind.value]
        assert self.get.call_count == 1

    def test_resource_endpoint_by_name(self):
        assert self.resolver.resource_endpoint('newAccount') == \
            test_util.DIRECTORY['newAccount']

    def test_resource_endpoint_unknown_kind(self):
        with pytest.raises(errors.ConfigurationError):
            self.resolver.resource_endpoint('renewalInfo')
        self.get.assert_not_called()

    def test_resource_endpoint_missing(self):
        directory = dict(test_util.DIRECTORY)
        del directory['keyChange']
        self.get.return_value = test_util.make_response(body=directory)
        with pytest.raises(errors.MissingEndpoint):
            self.resolver.resource_endpoint(messages.ResourceKind.KEY_CHANGE)

    def test_reset(self):
        self.resolver.resolve()
        self.resolver.reset()
        self.resolver.resolve()
        assert self.get.call_count == 2

    def test_concurrent_resolve_fetches_once(self):
        started = threading.Event()
        release = threading.Event()

        def slow_get(url):  # pylint: disable=unused-argument
            started.set()
            release.wait(5)
            return self.response

        self.get.side_effect = slow_get
        results = []
        threads = [threading.Thread(target=lambda: results.append(self.resolver.resolve()))
                   for _ in range(5)]
        for thread in threads:
            thread.start()
        started.wait(5)
        release.set()
        for thread in threads:
            thread.join()

        assert self.get.call_count == 1
        assert len(results) == 5
        assert all(result is results[0] for result in results)


if __name__ == '__main__':
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
