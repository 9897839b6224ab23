"""Upstream event producers: the retrieval graph and the document index.

Responsibilities:
    - Routing each query to a direct answer or a retrieval-augmented one
    - Streaming answer tokens as LangGraph-style message events
    - Cancelling runs on request
    - Indexing, listing and deleting per-thread documents

Built on Agno agents with an OpenAI-compatible model and a LanceDB
knowledge base.
"""

from ragchat.graph.documents import DocumentIndex, get_document_index
from ragchat.graph.retrieval import RetrievalGraph, get_retrieval_graph
from ragchat.graph.state import RunRegistry, ThreadStore

__all__ = [
    "DocumentIndex",
    "RetrievalGraph",
    "RunRegistry",
    "ThreadStore",
    "get_document_index",
    "get_retrieval_graph",
]
