from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from src.conceptmap.models.graph import KnowledgeGraph, NodeEdge
from src.conceptmap.models.quiz import Difficulty

# --- API Models ---

class ConversationCreate(BaseModel):
    title: Optional[str] = None

class ConversationUpdate(BaseModel):
    title: str

class ConversationSummary(BaseModel):
    id: str
    title: str
    createdAt: str
    messageCount: int
    hasGraph: bool
    isCurrent: bool

class MessageCreate(BaseModel):
    role: str
    content: Any

class GraphView(BaseModel):
    conversationId: str
    graphData: Optional[KnowledgeGraph] = None
    canUndo: bool = False
    canRedo: bool = False
    undoDepth: int = 0
    redoDepth: int = 0

class NodeCreate(BaseModel):
    name: str = Field(min_length=1)
    info: str = ""
    edges: List[NodeEdge] = Field(default_factory=list)

class NodeUpdate(BaseModel):
    name: str = Field(min_length=1)
    info: str = ""
    edges: Optional[List[NodeEdge]] = None

class PaletteUpdate(BaseModel):
    colorPaletteId: str

class RelationshipToggle(BaseModel):
    show: Optional[bool] = None

class MergeSummary(BaseModel):
    addedNodeIds: List[str]
    addedLinks: int
    duplicateNames: List[str]
    droppedLinks: List[Dict[str, str]]

class MergeResponse(GraphView):
    merge: MergeSummary

class GenerateRequest(BaseModel):
    assistantMessage: str

class QuizCreateRequest(BaseModel):
    difficulty: Difficulty = "Medium"
    numQuestions: int = Field(default=5, ge=1, le=20)

class QuizValidateRequest(BaseModel):
    question: str
    userAnswer: str

class ImportResponse(BaseModel):
    imported: int
    currentId: Optional[str] = None
