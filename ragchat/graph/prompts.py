"""Prompts for the retrieval graph agents."""

from ragchat.models.schemas import ChatMessage

ROUTER_INSTRUCTIONS = [
    "Decide how the user's question should be answered.",
    "Answer 'retrieve' if it needs information from the user's uploaded documents.",
    "Answer 'direct' if it is small talk or general knowledge.",
    'Respond only with JSON: {"route": "direct" | "retrieve", "reason": "<short reason>"}.',
]

RESPONSE_INSTRUCTIONS = [
    "Provide helpful and accurate responses.",
    "When document excerpts are provided, base your answer on them and say so.",
    "If the excerpts do not contain the answer, say you could not find it in the documents.",
    "Be concise yet thorough.",
]


def format_history(history: list[ChatMessage]) -> str:
    lines = [f"{message.role}: {message.content}" for message in history if message.content]
    return "\n".join(lines)


def format_docs(documents: list[str]) -> str:
    return "\n\n".join(documents)


def build_router_prompt(query: str, history: list[ChatMessage]) -> str:
    if not history:
        return f"Question: {query}"
    return f"Conversation so far:\n{format_history(history)}\n\nQuestion: {query}"


def build_answer_prompt(query: str, history: list[ChatMessage], documents: list[str]) -> str:
    sections: list[str] = []
    if history:
        sections.append(f"Conversation so far:\n{format_history(history)}")
    if documents:
        sections.append(f"Document excerpts:\n{format_docs(documents)}")
    sections.append(f"Question: {query}")
    return "\n\n".join(sections)
