# conceptmap/models/quiz.py
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List, Literal

Difficulty = Literal["Easy", "Medium", "Hard", "Expert"]
Evaluation = Literal["correct", "partiallyCorrect", "incorrect"]


class QuizQuestion(BaseModel):
    question: str
    hint: str
    exampleAnswer: str


class Quiz(BaseModel):
    questions: List[QuizQuestion] = Field(default_factory=list)


class AnswerEvaluation(BaseModel):
    evaluation: Evaluation
    explanation: str
