"""Per-thread document index backed by an Agno knowledge base.

Uploaded PDFs and pasted texts are embedded into a LanceDB table. Every
vector carries the owning thread id in its metadata so retrieval, listing
and deletion stay scoped to one chat.
"""

import logging
import uuid
from typing import Any, Literal

from agno.knowledge.knowledge import Knowledge
from agno.vectordb.lancedb import LanceDb

from ragchat.config import GraphConfig, get_graph_config
from ragchat.models.schemas import DocumentSource, DocumentsResponse, TextSource
from ragchat.parsing.pdf_parser import PDFContent, parse_pdf

logger = logging.getLogger(__name__)

SourceType = Literal["file", "text"]


class DocumentIndex:
    """Indexing, listing, deletion and search of thread documents.

    Args:
        config: Graph configuration; loaded from the environment if omitted.
        knowledge: Prebuilt knowledge base (tests pass a mock).
    """

    def __init__(
        self,
        config: GraphConfig | None = None,
        knowledge: Knowledge | None = None,
    ) -> None:
        self._config = config or get_graph_config()
        self._knowledge = knowledge or self._create_knowledge()
        self._files: dict[str, list[str]] = {}
        self._texts: dict[str, dict[str, str]] = {}

    def _create_knowledge(self) -> Knowledge:
        knowledge_dir = self._config.data_dir / "knowledge"
        knowledge_dir.mkdir(parents=True, exist_ok=True)
        vector_db = LanceDb(uri=str(knowledge_dir), table_name="documents")
        return Knowledge(vector_db=vector_db)

    def has_documents(self, thread_id: str) -> bool:
        return bool(self._files.get(thread_id) or self._texts.get(thread_id))

    async def add_pdf(self, thread_id: str, filename: str, file_content: bytes) -> PDFContent:
        """Parse a PDF and index its text for the thread.

        Raises:
            PDFParseError: If the file is not a readable PDF.
        """
        pdf_content = parse_pdf(file_content)
        if not pdf_content.text.strip():
            logger.warning(f"Skipping empty document: {filename}")
            return pdf_content

        metadata = {"thread_id": thread_id, "source_type": "file", "source": filename}
        if pdf_content.title:
            metadata["title"] = pdf_content.title

        await self._knowledge.add_content_async(
            name=filename,
            text_content=pdf_content.text,
            metadata=metadata,
        )
        files = self._files.setdefault(thread_id, [])
        if filename not in files:
            files.append(filename)
        logger.info(f"Indexed PDF {filename} ({pdf_content.pages} pages) for thread {thread_id}")
        return pdf_content

    async def add_text(self, thread_id: str, text: str, text_id: str | None = None) -> str:
        """Index a pasted text for the thread.

        Re-using a text id replaces the previous text.

        Returns:
            The text id.
        """
        text_id = text_id or str(uuid.uuid4())
        if text_id in self._texts.get(thread_id, {}):
            self._remove({"thread_id": thread_id, "source_type": "text", "source": text_id})

        await self._knowledge.add_content_async(
            name=f"text-{text_id}",
            text_content=text,
            metadata={"thread_id": thread_id, "source_type": "text", "source": text_id},
        )
        self._texts.setdefault(thread_id, {})[text_id] = text
        logger.info(f"Indexed text {text_id} for thread {thread_id}")
        return text_id

    def list_sources(self, thread_id: str) -> DocumentsResponse:
        return DocumentsResponse(
            files=[DocumentSource(name=name) for name in self._files.get(thread_id, [])],
            text_sources=[
                TextSource(id=text_id, text=text)
                for text_id, text in self._texts.get(thread_id, {}).items()
            ],
        )

    def delete_sources(
        self,
        thread_id: str,
        delete_type: SourceType,
        filename: str | None = None,
    ) -> bool:
        """Delete a file, or all text sources, from the thread.

        Returns:
            Whether the vector store reported success.
        """
        metadata: dict[str, Any] = {"thread_id": thread_id, "source_type": delete_type}
        if delete_type == "file":
            metadata["source"] = filename

        success = self._remove(metadata)
        if delete_type == "file":
            files = self._files.get(thread_id, [])
            if filename in files:
                files.remove(filename)
        else:
            self._texts.pop(thread_id, None)
        return success

    def _remove(self, metadata: dict[str, Any]) -> bool:
        removed = self._knowledge.remove_vectors_by_metadata(metadata)
        if not removed:
            logger.warning(f"No vectors removed for {metadata}")
        return bool(removed)

    async def search(self, query: str, k: int, filters: dict[str, Any]) -> list[str]:
        """Return the text of the ``k`` chunks most relevant to ``query``."""
        documents = await self._knowledge.async_search(
            query=query,
            max_results=k,
            filters=filters,
        )
        return [doc.content for doc in documents if doc.content]


_document_index: DocumentIndex | None = None


def get_document_index() -> DocumentIndex:
    """Get or create the global document index."""
    global _document_index
    if _document_index is None:
        _document_index = DocumentIndex()
    return _document_index
