"""FastAPI endpoints for ragchat.

Endpoints:
    - GET /health: Service health status
    - POST /api/chat: Streamed chat completion (Server-Sent Events)
    - POST /api/threads: Thread creation
    - POST /api/threads/{thread_id}/runs/{run_id}/cancel: Run cancellation
    - POST /api/upload/pdf, POST /api/upload/text: Document indexing
    - GET, DELETE /api/documents: Thread document listing and deletion
"""

from ragchat.api.app import app, create_app

__all__ = ["app", "create_app"]
