"""Tests for acme_session."""
