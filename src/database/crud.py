from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Any, Dict, Optional
from . import models

async def get_state_document(db: AsyncSession, doc_id: str = models.DEFAULT_DOCUMENT_ID) -> Optional[models.StateDocument]:
    result = await db.execute(select(models.StateDocument).filter(models.StateDocument.id == doc_id))
    return result.scalars().first()

async def load_state(db: AsyncSession, doc_id: str = models.DEFAULT_DOCUMENT_ID) -> Optional[Dict[str, Any]]:
    """Returns the stored conversations map, or None on a fresh installation."""
    doc = await get_state_document(db, doc_id)
    return dict(doc.payload) if doc else None

async def save_state(db: AsyncSession, payload: Dict[str, Any], doc_id: str = models.DEFAULT_DOCUMENT_ID) -> models.StateDocument:
    """Replaces the whole state document in the session. Does not commit."""
    doc = await get_state_document(db, doc_id)
    if doc is None:
        doc = models.StateDocument(id=doc_id, payload=payload)
        db.add(doc)
    else:
        doc.payload = payload
    await db.flush()
    return doc
