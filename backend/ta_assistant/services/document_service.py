"""
Document Service - Stores a session's submission and normalizes it.

Responsibilities:
1. Save the uploaded PDF under DATA_DIR/submissions/<session_id>/
2. Run the DocumentNormalizer over its bytes
3. Attach the NormalizedDocument to the session
"""
import asyncio
import time
from pathlib import Path
from typing import BinaryIO, Optional

from ta_assistant.core.config import settings
from ta_assistant.ingestion.document_processor import DocumentNormalizer, get_document_normalizer
from ta_assistant.models.document import NormalizedDocument
from ta_assistant.models.session import EvaluationSession
from ta_assistant.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_FILENAME = "submission.pdf"


class DocumentService:
    """Service for storing and ingesting student submissions."""

    def __init__(self, normalizer: DocumentNormalizer, submissions_dir: Optional[Path] = None):
        self.normalizer = normalizer
        self.submissions_dir = submissions_dir or settings.SUBMISSIONS_DIR
        logger.debug("DocumentService initialized")

    def session_dir(self, session_id: str) -> Path:
        directory = self.submissions_dir / session_id
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def save_submission(self, session_id: str, filename: str, source: BinaryIO) -> Path:
        """
        Copy an uploaded file into the session directory.

        Args:
            session_id: Owning session
            filename: Client-supplied name; only its final component is kept
            source: Readable binary stream

        Returns:
            Path of the stored file
        """
        safe_name = Path(filename or "").name
        if safe_name in ("", ".", ".."):
            safe_name = DEFAULT_FILENAME
        target = self.session_dir(session_id) / safe_name

        with open(target, "wb") as out:
            while chunk := source.read(1024 * 1024):
                out.write(chunk)

        logger.info(f"Submission saved: {target}")
        return target

    async def ingest_submission(self, session: EvaluationSession, file_path: Path) -> NormalizedDocument:
        """
        Normalize a stored submission and attach it to the session.

        Raises:
            IngestionError: Propagated from the normalizer
        """
        start_time = time.time()
        logger.info(f"🚀 Ingesting submission for session {session.id}: {file_path.name}")

        data = await asyncio.to_thread(file_path.read_bytes)
        document = await self.normalizer.normalize(data)

        session.submission_path = str(file_path)
        session.document = document

        logger.info(
            f"✅ Submission ingested in {time.time() - start_time:.2f}s "
            f"(pages={document.pages_count}, ocr={document.ocr_used})"
        )
        return document


# ==================== Factory ====================

def get_document_service(normalizer: Optional[DocumentNormalizer] = None) -> DocumentService:
    return DocumentService(normalizer=normalizer or get_document_normalizer())
