import asyncio
import mimetypes
import os
import tempfile
from typing import Iterable, Optional, Tuple

from langchain_community.document_loaders import PyPDFLoader
import structlog

from src.core.config import settings as _settings
from src.core.errors import ExtractionError
from src.core.models import SourceFile, UploadedDocument

# Initialize logger for this module
logger = structlog.get_logger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PAGE_SEPARATOR = "\n\n"


class DocumentExtractor:
    """
    Turns uploaded files (plain text or PDF) into plain text documents.
    """

    def __init__(self, encoding: Optional[str] = None):
        self._encoding = encoding or _settings.TEXT_ENCODING
        logger.info("document_extractor_initialized", encoding=self._encoding)

    @staticmethod
    def media_type_of(file: SourceFile) -> Optional[str]:
        """Declared media type, falling back to a guess from the filename."""
        if file.media_type:
            return file.media_type.split(";")[0].strip().lower()
        guessed, _ = mimetypes.guess_type(file.name)
        return guessed

    def extract(self, file: SourceFile) -> str:
        """
        Returns the text of a single file.
        Raises ExtractionError if the file cannot be read.
        """
        log = logger.bind(filename=file.name, file_size_bytes=len(file.content))

        if self.media_type_of(file) == PDF_MEDIA_TYPE:
            log.info("extraction_started", kind="pdf")
            return self._extract_pdf(file)

        log.info("extraction_started", kind="text")
        # Undecodable bytes become U+FFFD instead of failing the file
        return file.content.decode(self._encoding, errors="replace")

    def _extract_pdf(self, file: SourceFile) -> str:
        """
        Writes the PDF to a temp file, reads every page in order and cleans up.
        One failing page fails the whole file.
        """
        log = logger.bind(filename=file.name)
        tmp_path = None

        try:
            # delete=False is mandatory for Windows to allow re-opening by loader
            with tempfile.NamedTemporaryFile(delete=False, suffix=".pdf") as tmp:
                tmp.write(file.content)
                tmp_path = tmp.name

            log.debug("temp_file_created", tmp_path=tmp_path)

            pages = []
            for page in PyPDFLoader(tmp_path).lazy_load():
                pages.append(" ".join(page.page_content.split()))

            log.info("pdf_pages_extracted", page_count=len(pages))
            return PAGE_SEPARATOR.join(pages)

        except Exception as e:
            log.error("pdf_extraction_failed", error=str(e), exc_info=True)
            raise ExtractionError(filename=file.name) from e

        finally:
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                    log.debug("cleanup_success", tmp_path=tmp_path)
                except OSError as e:
                    log.warn("cleanup_failed", error=str(e), tmp_path=tmp_path)

    async def extract_batch(
        self, files: Iterable[SourceFile]
    ) -> Tuple[UploadedDocument, ...]:
        """
        Extracts every file of one selection concurrently.

        All-or-nothing: if any file fails, ExtractionError is raised and no
        document is returned. Documents come back in selection order; files
        with no text are dropped.
        """
        files = list(files)
        log = logger.bind(batch_size=len(files))
        loop = asyncio.get_running_loop()

        tasks = [loop.run_in_executor(None, self.extract, f) for f in files]
        try:
            texts = await asyncio.gather(*tasks)
        except ExtractionError:
            log.warn("batch_rejected")
            raise
        except Exception as e:
            log.error("batch_rejected", error=str(e), exc_info=True)
            raise ExtractionError() from e

        documents = []
        for file, text in zip(files, texts):
            if not text:
                log.info("empty_document_dropped", filename=file.name)
                continue
            documents.append(UploadedDocument(name=file.name, text=text))

        log.info("batch_extracted", document_count=len(documents))
        return tuple(documents)
