# -*- coding: utf-8 -*-
"""Prompt templates for graph generation, quiz creation and answer checking.

Each builder returns the full prompt text for one external request.
"""
from __future__ import annotations
from typing import Any, Dict, Optional
import json

_NODE_RULES = (
    "2. For each new node, provide a detailed description in Markdown (using multiple paragraphs followed by "
    "newlines for clarity, if needed) that captures the unique, relevant information from the message.\n"
    "    - **Avoid generic or obvious information that would not be helpful to the user.**\n"
    "    - For every example provided in the message (such as a code snippet or math problem) that you reference, "
    "include the exact text for that example in your node description. Do not generate or modify examples that "
    "are not explicitly given in the message.\n"
    "    - If the concept involves mathematical notation or formulas, YOU MUST include them using LaTeX "
    "(wrap inline math with $...$ and block math with $$...$$).\n"
    "    - If a programming example is relevant, YOU MUST include it in a fenced code block.\n"
    "3. Define relationships between concepts using \"source\" and \"target\" fields (using the concept names).\n"
    "4. **Do not generate numerical IDs or use numbers as references.**\n"
)

_EXAMPLE_RESPONSE = {
    "nodes": [
        {"name": "Concept A", "info": "A detailed summary focusing on the specific aspects mentioned in the message."},
        {"name": "Concept B", "info": "Another context-specific summary with relevant code or formulas if needed."},
    ],
    "links": [
        {"source": "Concept A", "target": "Concept B", "label": "relates to"},
    ],
}


def graph_prompt(assistant_message: str, existing_graph: Optional[Dict[str, Any]] = None) -> str:
    if existing_graph and existing_graph.get("nodes"):
        return (
            "You are updating an existing knowledge graph based on the latest message in a conversation between "
            "a user and an assistant.\n"
            "The graph consists of an array of **nodes (concepts)** and an array of **edges (relationships between "
            "concepts)**. Your goal is to create a living history of the conversation by summarizing key information "
            "and concepts and the relationships between them.\n\n"
            "**Your task**:\n"
            "1. Update the existing graph with new concepts and relationships derived from the latest message.\n"
            + _NODE_RULES +
            "5. If a concept already exists, do not duplicate it.\n"
            "6. **Limit each node to a maximum of 5 edges/relationships.** If further clarity is needed, create "
            "additional nodes.\n"
            "7. **Ensure every node is connected to the graph by an edge.**\n"
            "8. Format your response strictly as JSON with exactly two keys: \"nodes\" and \"links\".\n\n"
            "**Existing Graph:**\n```json\n"
            f"{json.dumps(existing_graph, indent=2)}\n```\n\n"
            f"**New message to analyze:**\n\"{assistant_message}\"\n\n"
            "**Return updated graph JSON ONLY, NO explanation.**"
        )
    return (
        "You are building a structured knowledge graph based on the latest message in a conversation between a "
        "user and an assistant.\n"
        "Your goal is to create a living history of the conversation by summarizing key information and concepts "
        "**nodes** and the relationships between them **edges**.\n\n"
        "**Your task**:\n"
        "1. Identify the most important information from the message and generate as many nodes as needed.\n"
        + _NODE_RULES +
        "5. **Ensure every node is connected to the graph by an edge.**\n"
        "6. **Limit each node to a maximum of 5 edges/relationships.** (If necessary for clarity, create "
        "additional nodes.)\n"
        "7. Format your response strictly as JSON with exactly two keys: \"nodes\" and \"links\".\n\n"
        f"**Message:**\n\"{assistant_message}\"\n\n"
        "**Example Response Format:**\n```json\n"
        f"{json.dumps(_EXAMPLE_RESPONSE, indent=2)}\n```\n\n"
        "**Return JSON ONLY, NO explanation.**"
    )


def quiz_prompt(graph_data: Dict[str, Any], difficulty: str, num_questions: int) -> str:
    return (
        f"You are creating a closed-book quiz with a {difficulty} difficulty level based on the following concept map.\n"
        "The concept map is represented as JSON, where \"nodes\" are concepts and \"links\" describe relationships "
        "between concepts:\n\n"
        f"{json.dumps(graph_data)}\n\n"
        "**Your task:**\n"
        f"- Generate exactly {num_questions} questions that test meaningful understanding of the concepts and their "
        "relationships.\n\n"
        "**Question guidelines:**\n"
        "- Questions must be clear, specific, and unambiguous.\n"
        "- Questions must clearly state what the user should do, e.g. \"List two advantages of...\" / "
        "\"Explain how X relates to Y\" / \"Compare A and B\".\n"
        "- The answer must not ask the user to look at external sources, including the concept map.\n"
        "- Target meaningful thinking, not trivia memorization.\n\n"
        "**Hint guidelines:**\n"
        "- Write a specific, targeted hint for each question that would assist a stuck user.\n"
        "- Hints must not reveal the answer directly or point to external resources.\n\n"
        "**Example Answer guidelines:**\n"
        "- Provide a concise example of a correct answer.\n\n"
        "**Difficulty settings:**\n"
        "- \"Easy\" → Recall simple facts, definitions, or direct relationships.\n"
        "- \"Medium\" → Apply knowledge to examples or explain straightforward connections.\n"
        "- \"Hard\" → Analyze, synthesize, or compare multiple concepts.\n"
        "- \"Expert\" → Critical thinking, edge cases, or deeper reasoning tasks.\n\n"
        "**Avoid:** duplicated questions, trivial questions, repeating the same concept multiple times.\n\n"
        "**Output Format (strict):**\n"
        '{"questions": [{"question": "string", "hint": "string", "exampleAnswer": "string"}]}'
    )


def answer_prompt(question: str, user_answer: str) -> str:
    return (
        "You are evaluating a user's answer to a quiz question.\n\n"
        f"**Question:**\n{question}\n\n"
        f"**User's Answer:**\n{user_answer}\n\n"
        "**Your task:**\n"
        "- Classify the user's answer as exactly one of: **\"correct\"**, **\"partiallyCorrect\"**, or **\"incorrect\"**.\n"
        "  - **Correct**: Accurately and meaningfully answers the question, even if phrasing, examples, or structure differ.\n"
        "  - **PartiallyCorrect**: Shows understanding but has minor inaccuracies or misunderstandings of concepts.\n"
        "  - **Incorrect**: Major misunderstandings, factual errors, off-topic, or fails to meaningfully answer.\n\n"
        "**Grading rules:**\n"
        "- Do not be punitive, grade fairly.\n"
        "- Completeness is not required unless explicitly asked for.\n"
        "- Do not invent extra requirements beyond what is implied.\n"
        "- Favor \"correct\" for reasonable answers even if they are short, concise, or use different wording.\n\n"
        "After grading, provide a helpful, constructive explanation addressed directly to the user.\n\n"
        "**Output format (strict):**\n"
        '{"evaluation": "correct | partiallyCorrect | incorrect", "explanation": "string"}'
    )
