"""JSON-lines dataset sink for classification records."""
import json
import logging
import os
import sys
from typing import Any, Dict, Optional, TextIO

logger = logging.getLogger(__name__)


class JsonLinesDataset:
    """Appends one JSON object per line to a file, or to stdout when no path is given."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.count = 0
        self._stream: Optional[TextIO] = None
        self._owns_stream = False

    def _open(self) -> TextIO:
        if self._stream is None:
            if self.path:
                directory = os.path.dirname(self.path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                self._stream = open(self.path, "a", encoding="utf-8")
                self._owns_stream = True
                logger.info(f"Writing records to {self.path}")
            else:
                self._stream = sys.stdout
        return self._stream

    def push(self, item: Dict[str, Any]):
        stream = self._open()
        stream.write(json.dumps(item, ensure_ascii=False) + "\n")
        stream.flush()
        self.count += 1

    def close(self):
        if self._stream is not None and self._owns_stream:
            self._stream.close()
            logger.debug(f"Closed dataset {self.path} after {self.count} records")
        self._stream = None
        self._owns_stream = False

    def __enter__(self) -> "JsonLinesDataset":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
