"""Retrieval graph: route a query, optionally retrieve, then answer.

The graph is the upstream event producer for the chat stream. A run
yields plain event dicts that the API frames as SSE:

    {"event": "metadata", "data": {"run_id": ..., "thread_id": ...}}
    {"event": "messages/metadata", "data": {<message id>: {"metadata": {"langgraph_node": ...}}}}
    {"event": "messages/partial", "data": [{"type": "ai", "content": <accumulated>, "id": ...}]}
    {"event": "error", "data": {"message": ...}}

Message events carry the full text accumulated so far, not a delta.
The router's decision is emitted on the message channel like any other
node output; consumers filter it out.
"""

import logging
import uuid
from collections.abc import AsyncGenerator
from typing import Any

from agno.agent import Agent
from agno.models.openai import OpenAIChat

from ragchat.config import GraphConfig, get_graph_config
from ragchat.graph.documents import DocumentIndex, get_document_index
from ragchat.graph.prompts import (
    RESPONSE_INSTRUCTIONS,
    ROUTER_INSTRUCTIONS,
    build_answer_prompt,
    build_router_prompt,
)
from ragchat.graph.state import RunRegistry, ThreadStore
from ragchat.models.schemas import ChatMessage, RetrievalConfig
from ragchat.streaming.constants import (
    ERROR_EVENT,
    INTERRUPT_MESSAGE,
    METADATA_EVENT,
    NODE_METADATA_KEY,
    PARTIAL_MESSAGE_EVENT,
    ROUTE_NODE,
    RUN_METADATA_EVENT,
)
from ragchat.streaming.route_filter import RouteDecision, extract_route_decision

logger = logging.getLogger(__name__)

DIRECT_ANSWER_NODE = "direct_answer"
CONTEXT_ANSWER_NODE = "respond_with_context"

Event = dict[str, Any]


def run_metadata_event(run_id: str, thread_id: str) -> Event:
    return {"event": RUN_METADATA_EVENT, "data": {"run_id": run_id, "thread_id": thread_id}}


def node_metadata_event(message_id: str, node: str) -> Event:
    return {"event": METADATA_EVENT, "data": {message_id: {"metadata": {NODE_METADATA_KEY: node}}}}


def partial_message_event(message_id: str, content: str) -> Event:
    return {
        "event": PARTIAL_MESSAGE_EVENT,
        "data": [{"type": "ai", "content": content, "id": message_id}],
    }


def error_event(message: str) -> Event:
    return {"event": ERROR_EVENT, "data": {"message": message}}


class RetrievalGraph:
    """Runs the route -> (retrieve) -> answer flow for a thread.

    Args:
        config: Graph configuration; loaded from the environment if omitted.
        documents: Document index used for retrieval.
    """

    def __init__(
        self,
        config: GraphConfig | None = None,
        documents: DocumentIndex | None = None,
    ) -> None:
        self._config = config or get_graph_config()
        self.documents = documents or get_document_index()
        self.threads = ThreadStore()
        self.runs = RunRegistry()
        self._router = self._create_agent(ROUTER_INSTRUCTIONS, markdown=False)
        self._responder = self._create_agent(RESPONSE_INSTRUCTIONS, markdown=True)

    def _create_agent(self, instructions: list[str], markdown: bool) -> Agent:
        model = OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )
        return Agent(model=model, instructions=instructions, markdown=markdown)

    def default_config(self, thread_id: str) -> RetrievalConfig:
        """Retrieval configuration scoping document search to one thread."""
        return RetrievalConfig(k=self._config.retrieval_k, filter_kwargs={"thread_id": thread_id})

    async def _route(self, query: str, history: list[ChatMessage]) -> str:
        response = await self._router.arun(build_router_prompt(query, history))
        return response.content or ""

    async def stream(
        self,
        query: str,
        thread_id: str,
        config: RetrievalConfig | None = None,
    ) -> AsyncGenerator[Event]:
        """Run the graph for one query, yielding stream events.

        Errors are reported as an error event rather than raised. A run
        cancelled through ``runs.cancel`` ends with an ``interrupt`` error.
        """
        config = config or self.default_config(thread_id)
        run_id = self.runs.start(thread_id)
        yield run_metadata_event(run_id, thread_id)

        try:
            history = self.threads.get_messages(thread_id)

            route: RouteDecision = "direct"
            if self.documents.has_documents(thread_id):
                route_id = str(uuid.uuid4())
                route_text = await self._route(query, history)
                yield node_metadata_event(route_id, ROUTE_NODE)
                yield partial_message_event(route_id, route_text)
                route = extract_route_decision(route_text) or "direct"
            logger.info(f"Run {run_id} routed to {route}")

            if self.runs.is_cancelled(thread_id, run_id):
                yield error_event(INTERRUPT_MESSAGE)
                return

            documents: list[str] = []
            if route == "retrieve":
                documents = await self.documents.search(query, config.k, config.filter_kwargs)
                logger.info(f"Run {run_id} retrieved {len(documents)} chunks")

            answer_id = str(uuid.uuid4())
            yield node_metadata_event(answer_id, CONTEXT_ANSWER_NODE if documents else DIRECT_ANSWER_NODE)

            answer = ""
            response_stream = self._responder.arun(
                build_answer_prompt(query, history, documents),
                stream=True,
            )
            async for chunk in response_stream:
                if self.runs.is_cancelled(thread_id, run_id):
                    yield error_event(INTERRUPT_MESSAGE)
                    return
                if hasattr(chunk, "content") and isinstance(chunk.content, str) and chunk.content:
                    answer += chunk.content
                    yield partial_message_event(answer_id, answer)

            self.threads.append(
                thread_id,
                ChatMessage(role="user", content=query),
                ChatMessage(role="assistant", content=answer),
            )
        except Exception as e:
            logger.error(f"Run {run_id} failed: {e}")
            yield error_event(str(e))
        finally:
            self.runs.finish(thread_id, run_id)


_retrieval_graph: RetrievalGraph | None = None


def get_retrieval_graph() -> RetrievalGraph:
    """Get or create the global retrieval graph.

    Raises:
        ValueError: If no API key is configured.
    """
    global _retrieval_graph
    if _retrieval_graph is None:
        _retrieval_graph = RetrievalGraph()
    return _retrieval_graph
