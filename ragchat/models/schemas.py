from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_MESSAGE_LENGTH = 20_000
MAX_TEXT_LENGTH = 20_000
MAX_ID_LENGTH = 200

MessageRole = Literal["user", "assistant"]


class ChatMessage(BaseModel):
    """A single chat message in the conversation.

    Attributes:
        role: The speaker, user or assistant.
        content: The message text.
    """

    role: MessageRole
    content: str


class ChatRequest(BaseModel):
    """Request payload for the streaming chat endpoint.

    Attributes:
        message: User's question or prompt.
        thread_id: Thread that scopes history and uploaded documents.
        assistant_id: Graph to run; defaults to the retrieval graph.
        messages_before_edit: History to restore before running, sent when
            the user retries or edits an earlier message.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    thread_id: str = Field(..., alias="threadId", min_length=1, max_length=MAX_ID_LENGTH)
    assistant_id: str | None = Field(None, alias="assistantId", max_length=MAX_ID_LENGTH)
    messages_before_edit: list[ChatMessage] | None = Field(None, alias="messagesBeforeEdit")

    @field_validator("message", "thread_id", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Strip whitespace before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class TextUploadRequest(BaseModel):
    """Raw text to index for a thread."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)
    thread_id: str = Field(..., alias="threadId", min_length=1, max_length=MAX_ID_LENGTH)
    text_id: str | None = Field(None, alias="textId", max_length=MAX_ID_LENGTH)

    @field_validator("text", "thread_id", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Strip whitespace before validation."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("text_id", mode="before")
    @classmethod
    def blank_id_to_none(cls, v: str | None) -> str | None:
        """Treat a blank text id as absent."""
        if isinstance(v, str):
            return v.strip() or None
        return v


class TextUploadResponse(BaseModel):
    """Response after indexing a text source."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    thread_id: str = Field(..., alias="threadId")
    text_id: str = Field(..., alias="textId")


class PDFUploadResponse(BaseModel):
    """Response after PDF upload processing.

    Attributes:
        filename: Name of the uploaded file.
        pages: Number of pages in the document.
        success: Whether the upload was successful.
        error: Error message if upload failed.
    """

    filename: str
    pages: int
    success: bool
    error: str | None = None


class DocumentSource(BaseModel):
    """An uploaded file indexed for a thread."""

    type: Literal["file"] = "file"
    name: str


class TextSource(BaseModel):
    """A pasted text indexed for a thread."""

    type: Literal["text"] = "text"
    id: str
    text: str


class DocumentsResponse(BaseModel):
    """Documents indexed for a thread."""

    model_config = ConfigDict(populate_by_name=True)

    files: list[DocumentSource] = Field(default_factory=list)
    text_sources: list[TextSource] = Field(default_factory=list, alias="textSources")


class ThreadResponse(BaseModel):
    """A newly created thread."""

    thread_id: str


class CancelRunResponse(BaseModel):
    """Outcome of a run cancellation request."""

    cancelled: bool


class RetrievalConfig(BaseModel):
    """Per-run configuration passed to the retrieval graph.

    Attributes:
        k: Number of document chunks to retrieve.
        filter_kwargs: Metadata filters applied to document search.
    """

    k: int = Field(default=5, ge=1, le=50)
    filter_kwargs: dict[str, str] = Field(default_factory=dict)
