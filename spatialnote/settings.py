"""Application state and localized labels."""

import os
from typing import Optional, List, Dict, Any
from dataclasses import dataclass, field, asdict

DEFAULT_LANGUAGE = "ru"
LANGUAGES = ("ru", "en")

DEFAULT_LINKS_URL = "http://localhost:3000"

LABELS = {
    "new_node": {"ru": "Новая заметка", "en": "New Node"},
    "node": {"ru": "Заметка", "en": "Node"},
    "new_branch": {"ru": "Новая ветка", "en": "New Branch"},
}


def label_for(key: str, language: str = DEFAULT_LANGUAGE) -> str:
    """Look up a UI label, falling back to English for unknown languages."""
    variants = LABELS[key]
    return variants.get(language, variants["en"])


def get_links_url() -> Optional[str]:
    """Base URL of the link registry, None when disabled."""
    url = os.environ.get("SPATIALNOTE_LINKS_URL", DEFAULT_LINKS_URL)
    return url or None


@dataclass
class AppState:
    """Canvas-wide preferences persisted next to the graph.

    ``theme`` and ``custom_fonts`` are owned by the UI layer and stored
    verbatim.
    """
    theme: Dict[str, Any] = field(default_factory=dict)
    grid_enabled: bool = False
    snap_to_grid: bool = False
    custom_fonts: List[Dict[str, Any]] = field(default_factory=list)
    custom_links: List[Dict[str, Any]] = field(default_factory=list)
    language: str = DEFAULT_LANGUAGE

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "AppState":
        if not data:
            return cls()
        # Filter to only known fields to handle schema evolution
        known = {f.name for f in cls.__dataclass_fields__.values()}
        state = cls(**{k: v for k, v in data.items() if k in known and v is not None})
        if state.language not in LANGUAGES:
            state.language = DEFAULT_LANGUAGE
        return state
