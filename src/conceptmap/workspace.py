"""
The set of conversations held by one installation.

Each conversation owns an independent `GraphStore` (and therefore its own
history); stores are created lazily and kept in an arena keyed by
conversation id. The workspace also tracks which conversation is active,
issues request tickets so that late responses can be recognized after a
conversation switch, and serializes the whole state to one document.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging
import uuid

from .context import AppContext
from .errors import ConversationNotFoundError, StaleResponseError
from .identity import IdentityResolver
from .merge import MergeResult
from .models.conversation import ChatMessage, Conversation, ConversationMap
from .models.graph import KnowledgeGraph
from .store import GraphStore

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
UNTITLED = "Untitled Chat"


@dataclass(frozen=True)
class RequestTicket:
    """Captures the conversation an async request was started for."""
    request_id: str
    conversation_id: str


class Workspace:
    def __init__(self, context: Optional[AppContext] = None, conversations: Optional[Dict[str, Conversation]] = None):
        self.context = context or AppContext()
        self._conversations: Dict[str, Conversation] = dict(conversations or {})
        self._stores: Dict[str, GraphStore] = {}
        self.current_id: Optional[str] = None
        self.dirty = False
        if self._conversations:
            self.current_id = next(iter(self._conversations))
        else:
            self.create_conversation()

    # ---- serialization ---------------------------------------------------------

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]], context: Optional[AppContext] = None) -> "Workspace":
        conversations = ConversationMap.model_validate(data or {}).root
        return cls(context, conversations)

    def to_document(self) -> Dict[str, Any]:
        return ConversationMap(self._conversations).model_dump(mode="json")

    def replace_all(self, conversations: Dict[str, Conversation]) -> None:
        """Swap in a whole new state (import). The first conversation becomes active."""
        self._conversations = dict(conversations)
        self._stores.clear()
        self.current_id = next(iter(self._conversations), None)
        if self.current_id is None:
            self.create_conversation()
        self.dirty = True

    # ---- conversations ---------------------------------------------------------

    def get(self, conversation_id: str) -> Conversation:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            raise ConversationNotFoundError(conversation_id)
        return conv

    @property
    def current(self) -> Optional[Conversation]:
        return self._conversations.get(self.current_id) if self.current_id else None

    def list_conversations(self) -> List[Conversation]:
        """Most recently active first."""
        return sorted(self._conversations.values(), key=lambda c: c.last_activity(), reverse=True)

    def create_conversation(self, title: str = DEFAULT_TITLE) -> Conversation:
        conv = Conversation(id=str(uuid.uuid4()), title=title)
        self._conversations = {conv.id: conv, **self._conversations}
        self._switch(conv.id)
        self.dirty = True
        return conv

    def switch_conversation(self, conversation_id: str) -> Conversation:
        conv = self.get(conversation_id)
        self._switch(conversation_id)
        return conv

    def _switch(self, conversation_id: str) -> None:
        if conversation_id == self.current_id:
            return
        # History does not travel across conversations
        for cid in {self.current_id, conversation_id}:
            if cid and cid in self._stores:
                self._stores[cid].reset_history()
        self.current_id = conversation_id

    def rename_conversation(self, conversation_id: str, title: str) -> Conversation:
        conv = self.get(conversation_id)
        conv.title = title.strip() or UNTITLED
        self.dirty = True
        return conv

    def delete_conversation(self, conversation_id: str) -> None:
        self.get(conversation_id)
        del self._conversations[conversation_id]
        self._stores.pop(conversation_id, None)
        self.dirty = True
        if self.current_id == conversation_id:
            self.current_id = None
            remaining = next(iter(self._conversations), None)
            if remaining is None:
                logger.info("Last conversation deleted, creating a new one")
                self.create_conversation()
            else:
                self._switch(remaining)

    def add_message(self, message: ChatMessage, conversation_id: Optional[str] = None) -> Conversation:
        conv = self.get(conversation_id or self._require_current())
        conv.messages.append(message)
        self.dirty = True
        return conv

    def _require_current(self) -> str:
        if self.current_id is None:
            raise ConversationNotFoundError("<none>")
        return self.current_id

    # ---- graph stores ----------------------------------------------------------

    def store(self, conversation_id: Optional[str] = None) -> GraphStore:
        cid = conversation_id or self._require_current()
        conv = self.get(cid)
        st = self._stores.get(cid)
        if st is None:
            ctx = self.context
            st = GraphStore(
                cid,
                graph=conv.graphData,
                resolver=IdentityResolver(normalize=ctx.normalize_names),
                default_palette_id=ctx.default_palette_id,
                history_capacity=ctx.history_capacity,
            )
            st.subscribe(self._on_graph_changed)
            self._stores[cid] = st
        return st

    def _on_graph_changed(self, conversation_id: str, graph: Optional[KnowledgeGraph]) -> None:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            return
        conv.graphData = graph.model_copy(deep=True) if graph is not None else None
        self.dirty = True

    # ---- async request guard ---------------------------------------------------

    def begin_request(self) -> RequestTicket:
        return RequestTicket(request_id=str(uuid.uuid4()), conversation_id=self._require_current())

    def is_current(self, ticket: RequestTicket) -> bool:
        return ticket.conversation_id == self.current_id

    def ensure_current(self, ticket: RequestTicket) -> None:
        if not self.is_current(ticket):
            logger.warning(
                "Discarding stale response %s for conversation %s (active: %s)",
                ticket.request_id, ticket.conversation_id, self.current_id,
            )
            raise StaleResponseError(ticket.conversation_id, self.current_id)

    def commit_fragment(self, ticket: RequestTicket, fragment: Any) -> MergeResult:
        """Merge a generation response if its conversation is still active."""
        self.ensure_current(ticket)
        return self.store(ticket.conversation_id).apply_fragment(fragment)
