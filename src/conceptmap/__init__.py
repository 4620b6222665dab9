"""
Concept-map engine: per-conversation knowledge graphs built from generated
fragments and manual edits, with bounded undo/redo.
"""
from .identity import IdentityResolver
from .merge import MergeEngine, MergeResult, MergeReport, validate_fragment
from .settings import SettingsManager, ColorAssigner
from .history import HistoryManager
from .store import GraphStore
from .workspace import Workspace, RequestTicket
from .context import AppContext

__all__ = [
    "IdentityResolver", "MergeEngine", "MergeResult", "MergeReport", "validate_fragment",
    "SettingsManager", "ColorAssigner", "HistoryManager", "GraphStore",
    "Workspace", "RequestTicket", "AppContext",
]
