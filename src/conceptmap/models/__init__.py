from .graph import (
    GraphNode, GraphLink, GraphSettings, KnowledgeGraph, empty_graph,
    FragmentNode, FragmentLink, GraphFragment,
    WireNode, WireLink, WireGraph, NodeEdge, ColorPalette,
)
from .conversation import ChatMessage, Conversation, ConversationMap
from .quiz import QuizQuestion, Quiz, AnswerEvaluation, Difficulty, Evaluation

__all__ = [
    "GraphNode", "GraphLink", "GraphSettings", "KnowledgeGraph", "empty_graph",
    "FragmentNode", "FragmentLink", "GraphFragment",
    "WireNode", "WireLink", "WireGraph", "NodeEdge", "ColorPalette",
    "ChatMessage", "Conversation", "ConversationMap",
    "QuizQuestion", "Quiz", "AnswerEvaluation", "Difficulty", "Evaluation",
]
