"""ragchat - retrieval-augmented chat over a streaming event pipeline.

Combines FastAPI for SSE streaming, Agno for the retrieval graph,
httpx for consuming the stream, NiceGUI for the chat page, and Pydantic
for data validation.

Components:
    - streaming: SSE framing, event classification, route-payload filtering
    - chat: client-side session orchestration and API client
    - graph: retrieval graph and document index (upstream event producers)
    - api: HTTP endpoints and streamed responses
    - parsing: PDF extraction for document uploads
    - ui: Web interface for chat interactions
    - models: Request/response schemas
"""

__version__ = "0.1.0"
