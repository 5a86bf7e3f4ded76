"""Internal code of acme_session, not part of the public API."""
