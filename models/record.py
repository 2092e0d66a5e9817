from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class ScriptRef:
    """A script source resolved against the page URL."""
    absolute_url: str
    host: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"absolute_url": self.absolute_url, "host": self.host}


@dataclass(frozen=True)
class ClassificationRecord:
    """Technology inventory for a single page."""
    url: str
    title: str = ""
    technologies: Tuple[str, ...] = ()
    cdns: Tuple[str, ...] = ()
    analytics: Tuple[str, ...] = ()
    scripts: Tuple[ScriptRef, ...] = ()
    meta_generator: str = ""
    server: str = ""
    detected_via: Tuple[str, ...] = ()
    timestamp: str = field(default="", compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "technologies": list(self.technologies),
            "cdns": list(self.cdns),
            "analytics": list(self.analytics),
            "scripts": [s.to_dict() for s in self.scripts],
            "meta_generator": self.meta_generator,
            "server": self.server,
            "detected_via": list(self.detected_via),
            "timestamp": self.timestamp,
        }
