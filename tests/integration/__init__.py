"""Integration tests for the HTTP API and the client/server stream round trip."""
