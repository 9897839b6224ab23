"""Unit tests for individual components in isolation.

Coverage:
    - streaming/: frame splitting, line parsing, stream reading,
      event classification, route payload filtering
    - chat/: session state machine over a fake backend
    - graph/: retrieval graph event sequence with mocked agents
"""
