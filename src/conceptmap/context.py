from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
import os

from dotenv import load_dotenv

from .history import DEFAULT_HISTORY_CAPACITY
from .palettes import default_palette

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class AppContext:
    """Settings shared by every conversation's store, passed in explicitly."""
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    default_palette_id: str = field(default_factory=lambda: default_palette().id)
    normalize_names: bool = False
    provider: str = "openai"
    graph_model: Optional[str] = None
    api_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AppContext":
        return cls(
            history_capacity=int(os.getenv("HISTORY_CAPACITY", str(DEFAULT_HISTORY_CAPACITY))),
            default_palette_id=os.getenv("DEFAULT_PALETTE_ID") or default_palette().id,
            normalize_names=_env_bool("NORMALIZE_CONCEPT_NAMES"),
            provider=os.getenv("LLM_PROVIDER", "openai"),
            graph_model=os.getenv("LLM_GRAPH_MODEL") or None,
            api_key=os.getenv("LLM_API_KEY") or None,
        )
