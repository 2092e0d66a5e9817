import logging
from typing import Any, Dict, Optional, Protocol, TYPE_CHECKING

from core.engine import ClassificationEngine
from core.extractor import extract_evidence
from models.record import ClassificationRecord

if TYPE_CHECKING:
    from fetch.crawler import FetchedPage


class RecordSink(Protocol):
    def push(self, item: Dict[str, Any]) -> None: ...


class PagePipeline:
    """Per-page glue: extract evidence, classify, hand the record to the sink."""

    def __init__(self, engine: ClassificationEngine, sink: RecordSink, include_resource_hints: bool = True):
        self.engine = engine
        self.sink = sink
        self.include_resource_hints = include_resource_hints
        self.logger = logging.getLogger(__name__)

    async def process(self, page: 'FetchedPage') -> Optional[ClassificationRecord]:
        url = page.loaded_url or page.url
        self.logger.info(f"Processing {url}")
        try:
            markup = page.document if page.document is not None else page.html
            bundle = extract_evidence(markup, url, include_resource_hints=self.include_resource_hints)
            record = self.engine.classify(bundle)
        except Exception as e:
            self.logger.warning(f"Extraction failed for {url}: {e}")
            return None

        self.sink.push(record.to_dict())
        self.logger.info(f"Saved tech-stack record for {url} ({len(record.technologies)} technologies)")
        return record

    # Crawler handler signature
    __call__ = process
