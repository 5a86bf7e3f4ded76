"""ACME protocol session layer.

Directory discovery, replay nonce bookkeeping and response processing for
clients of the `ACME protocol`_. Signing of outgoing messages is left to
the caller; see `acme_session.session.AcmeSession`.

.. _`ACME protocol`: https://datatracker.ietf.org/doc/html/rfc8555

"""

# version number like 1.2.3a0, must have at least 2 parts, like 1.2
__version__ = '0.1.0'
