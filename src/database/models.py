from sqlalchemy import Column, String, DateTime, func, JSON
from .database import Base

# One document per installation holds every conversation
DEFAULT_DOCUMENT_ID = "conversations"

class StateDocument(Base):
    __tablename__ = "state_documents"

    id = Column(String, primary_key=True, default=DEFAULT_DOCUMENT_ID)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<StateDocument(id={self.id}, conversations={len(self.payload or {})})>"
