"""Error taxonomy for the concept-map engine."""
from __future__ import annotations
from typing import Optional


class ConceptMapError(Exception):
    """Base class for all errors raised by the graph engine."""


class FragmentValidationError(ConceptMapError):
    """A fragment from the generation service is malformed.

    Raised before any state changes, so the canonical graph stays as it was.
    """

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class UnresolvedReferenceError(ConceptMapError):
    """A fragment link names a concept that is not in the graph.

    Non-fatal: the merge drops the link and records this error in its report.
    """

    def __init__(self, source: str, target: str, label: str = ""):
        super().__init__(f"Unresolved link: {source} -> {target}")
        self.source = source
        self.target = target
        self.label = label


class StaleResponseError(ConceptMapError):
    """A response arrived for a conversation that is no longer active."""

    def __init__(self, requested_for: str, current: Optional[str]):
        super().__init__(f"Response for conversation {requested_for} arrived after switch to {current}")
        self.requested_for = requested_for
        self.current = current


class ConversationNotFoundError(ConceptMapError):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class NodeNotFoundError(ConceptMapError):
    def __init__(self, node_id: str):
        super().__init__(f"Node not found: {node_id}")
        self.node_id = node_id


class UnknownPaletteError(ConceptMapError):
    def __init__(self, palette_id: str):
        super().__init__(f"Unknown color palette: {palette_id}")
        self.palette_id = palette_id


class GenerationServiceError(ConceptMapError):
    """The external text-generation service failed or was misconfigured."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


# Messages surfaced to the user for upstream HTTP failures
_STATUS_MESSAGES = {
    401: "Invalid API key.",
    403: "Permission denied.",
    429: "Rate limit exceeded.",
    400: "Bad request.",
}


def message_for_status(status_code: int) -> str:
    if status_code in _STATUS_MESSAGES:
        return _STATUS_MESSAGES[status_code]
    if status_code >= 500:
        return "Server error."
    return "An error occurred."


class GraphNotFoundError(ConceptMapError):
    """The conversation has no graph yet (neither merged nor cold-started)."""

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation {conversation_id} has no graph")
        self.conversation_id = conversation_id
