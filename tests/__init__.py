"""Test package for ragchat.

Structure:
    - unit/: Stream pipeline, session, graph and config tests in isolation
    - integration/: HTTP API tests through httpx's ASGI transport

Uses fakes for the byte stream source and the chat backend, and mocks for
Agno classes. Leverages pytest-check for soft assertions.
"""
