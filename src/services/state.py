import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.conceptmap.context import AppContext
from src.conceptmap.workspace import Workspace
from src.database import crud

logger = logging.getLogger(__name__)


class WorkspaceState:
    """Holds the live workspace and serializes mutations against it.

    Every persisted write rewrites the whole state document.
    """

    def __init__(self, workspace: Workspace):
        self.workspace = workspace
        self.lock = asyncio.Lock()

    @classmethod
    async def load(cls, db: AsyncSession, context: Optional[AppContext] = None) -> "WorkspaceState":
        data = await crud.load_state(db)
        workspace = Workspace.from_document(data, context or AppContext.from_env())
        state = cls(workspace)
        if data is None or workspace.dirty:
            await state.persist(db)
        return state

    async def persist(self, db: AsyncSession) -> None:
        try:
            await crud.save_state(db, self.workspace.to_document())
            await db.commit()
        except Exception:
            logger.exception("Failed to persist conversations")
            await db.rollback()
            raise
        self.workspace.dirty = False
