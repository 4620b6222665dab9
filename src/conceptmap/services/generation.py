"""
Client for the graph-generation service.

"Add message to graph" is a two-step action: the current graph is stripped
to names and sent along with the assistant message, then the returned
fragment is merged into the conversation the request was started for. If the
user switched conversations while the request was in flight, the response
is discarded instead of being applied to the wrong graph.
"""
from __future__ import annotations
from contextlib import nullcontext
from typing import Optional
import asyncio
import logging

from pydantic import BaseModel, Field

from ..adapter import fragment_from_response, generation_context
from ..config.llm import llm_json
from ..context import AppContext
from ..errors import FragmentValidationError
from ..merge import MergeResult
from ..models.graph import GraphFragment, KnowledgeGraph
from ..prompts import graph_prompt
from ..workspace import Workspace

logger = logging.getLogger(__name__)


class GenerationRequest(BaseModel):
    assistantMessage: str
    existingGraph: Optional[dict] = Field(default=None)


async def request_fragment(assistant_message: str, existing: Optional[KnowledgeGraph], ctx: AppContext) -> GraphFragment:
    req = GenerationRequest(assistantMessage=assistant_message, existingGraph=generation_context(existing))
    prompt = graph_prompt(req.assistantMessage, req.existingGraph)
    try:
        raw = await llm_json("generateGraph", prompt, ctx.provider, ctx.api_key, ctx.graph_model)
    except ValueError as e:
        raise FragmentValidationError(str(e)) from e
    return fragment_from_response(raw)


async def add_message_to_graph(workspace: Workspace, assistant_message: str, lock: Optional[asyncio.Lock] = None) -> MergeResult:
    """Generate a fragment for the active conversation and merge it.

    Raises StaleResponseError when the active conversation changed while the
    generation request was outstanding; the graph is left untouched.
    """
    ticket = workspace.begin_request()
    existing = workspace.store(ticket.conversation_id).graph
    fragment = await request_fragment(assistant_message, existing, workspace.context)
    async with (lock or nullcontext()):
        result = workspace.commit_fragment(ticket, fragment)
    logger.info(
        "Added message to graph of conversation %s (%d new nodes)",
        ticket.conversation_id, len(result.report.added_node_ids),
    )
    return result
