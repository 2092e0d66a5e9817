"""Crawl configuration, read from an optional JSON input file."""
import json
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from core.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class CrawlConfig:
    start_urls: List[str] = field(default_factory=lambda: ["https://example.com"])
    max_requests_per_crawl: int = 200
    follow_internal_only: bool = True
    # Off: resource hints are not collected, CDN hosts come from script srcs only
    detect_cdns_and_libraries: bool = True
    enqueue_links: bool = False
    max_concurrency: int = 5
    request_timeout: float = 10.0
    headers: Dict[str, str] = field(default_factory=dict)
    output: Optional[str] = None  # None writes JSON lines to stdout

    def __post_init__(self):
        self._validate()

    def _validate(self):
        if not isinstance(self.start_urls, list) or not all(isinstance(u, str) for u in self.start_urls):
            raise ConfigError("start_urls must be a list of strings")
        for name in ("max_requests_per_crawl", "max_concurrency"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        for name in ("follow_internal_only", "detect_cdns_and_libraries", "enqueue_links"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false")
        if isinstance(self.request_timeout, bool) or not isinstance(self.request_timeout, (int, float)) \
                or self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be a positive number, got {self.request_timeout!r}")
        if not isinstance(self.headers, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in self.headers.items()
        ):
            raise ConfigError("headers must be an object of string values")
        if self.output is not None and not isinstance(self.output, str):
            raise ConfigError("output must be a file path or null")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawlConfig":
        if not isinstance(data, dict):
            raise ConfigError("Crawl input must be a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown input keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    def merged(self, **overrides: Any) -> "CrawlConfig":
        """Copy with non-None overrides applied, e.g. from CLI flags."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return CrawlConfig.from_dict(values)


def load_config(path: Optional[str] = None) -> CrawlConfig:
    """Load the crawl input file; no path gives the defaults."""
    if not path:
        return CrawlConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Input file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in input file {path}: {e}") from e
    config = CrawlConfig.from_dict(data)
    logger.info(f"Loaded crawl input from {path}")
    return config


def load_headers(path: str) -> Dict[str, str]:
    """Load extra HTTP headers from a JSON object file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            headers = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Headers file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in headers file: {e}") from e
    if not isinstance(headers, dict):
        raise ConfigError("Headers file must contain a JSON object (dictionary)")
    logger.info(f"Loaded {len(headers)} custom headers from {path}")
    return headers
