from __future__ import annotations
from typing import Optional

from pydantic import ValidationError

from ..adapter import quiz_payload
from ..config.llm import llm_json
from ..context import AppContext
from ..errors import GenerationServiceError
from ..models.graph import KnowledgeGraph
from ..models.quiz import AnswerEvaluation, Difficulty, Quiz
from ..prompts import answer_prompt, quiz_prompt


async def create_quiz(graph: Optional[KnowledgeGraph], difficulty: Difficulty, num_questions: int, ctx: AppContext) -> Quiz:
    prompt = quiz_prompt(quiz_payload(graph), difficulty, num_questions)
    try:
        raw = await llm_json("createQuiz", prompt, ctx.provider, ctx.api_key, ctx.graph_model)
        quiz = Quiz.model_validate(raw)
    except (ValueError, ValidationError) as e:
        raise GenerationServiceError("Failed to create quiz.", status_code=502) from e
    if len(quiz.questions) != num_questions:
        raise GenerationServiceError(
            f"Expected {num_questions} questions, got {len(quiz.questions)}.", status_code=502
        )
    return quiz


async def evaluate_answer(question: str, user_answer: str, ctx: AppContext) -> AnswerEvaluation:
    prompt = answer_prompt(question, user_answer)
    try:
        raw = await llm_json("validateAnswer", prompt, ctx.provider, ctx.api_key, ctx.graph_model)
        return AnswerEvaluation.model_validate(raw)
    except (ValueError, ValidationError) as e:
        raise GenerationServiceError("Failed to evaluate answer.", status_code=502) from e
