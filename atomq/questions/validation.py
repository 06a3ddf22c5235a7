"""
Shared validation for question bodies posted to activities and groups.
"""
from atomq.common.validators import FieldValidator
from atomq.questions.models import (
    Difficulty,
    MULTI_SELECT_SEPARATOR,
    Question,
    QuestionType,
)


def validate_question(v: FieldValidator) -> dict:
    """
    Read a new question's fields from the validator's data.

    Errors are collected on ``v``; the returned dict is only meaningful
    when ``v.valid`` is true afterwards.
    """
    fields = {
        "title": v.string("title", required=True, max_length=255),
        "content": v.string("content", required=True),
        "type": v.choice("type", QuestionType.ALL, required=True),
        "options": v.string_list("options", required=False),
        "correct_answer": v.string("correctAnswer", required=True),
        "explanation": v.string("explanation", allow_empty=True),
        "difficulty": v.choice("difficulty", Difficulty.ALL) or Difficulty.MEDIUM,
    }

    question_type = fields["type"]
    options = fields["options"]
    answer = fields["correct_answer"]
    if question_type is None or answer is None:
        return fields

    if question_type == QuestionType.FILL_IN_BLANK:
        fields["options"] = options or []
        return fields

    if not options:
        if "options" not in {e["field"] for e in v.errors}:
            v.add_error("options", "Options are required")
        return fields

    if question_type == QuestionType.MULTI_SELECT:
        chosen = [a.strip() for a in answer.split(MULTI_SELECT_SEPARATOR)]
        if not all(chosen) or any(a not in options for a in chosen):
            v.add_error("correctAnswer", "Correct answer must list options separated by '|'")
    elif answer not in options:
        v.add_error("correctAnswer", "Correct answer must be one of the options")
    return fields


def build_question(fields: dict, group_id: int | None = None) -> Question:
    question = Question(
        group_id=group_id,
        title=fields["title"],
        content=fields["content"],
        type=fields["type"],
        correct_answer=fields["correct_answer"],
        explanation=fields["explanation"] or None,
        difficulty=fields["difficulty"],
        is_active=True,
    )
    question.set_options(fields["options"] or [])
    return question
