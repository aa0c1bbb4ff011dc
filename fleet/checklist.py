"""Checklist templates and the responses drivers submit against them."""

from dataclasses import dataclass, field
from typing import List, Optional

ANSWER_TYPES = ("text", "number", "status")


@dataclass
class ChecklistQuestion:
    id: str
    text: str
    required: bool = False
    answer_type: str = "text"
    allows_note: bool = False


@dataclass
class ChecklistTemplate:
    """A named list of questions a driver answers before departure."""

    id: Optional[str]
    name: str
    description: str = ""
    questions: List[ChecklistQuestion] = field(default_factory=list)
    updated_at: str = ""

    def get_question(self, question_id: str) -> Optional[ChecklistQuestion]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass
class ChecklistAnswer:
    question_id: str
    question_text: str
    answer_type: str
    value: str
    note: str = ""


@dataclass
class ChecklistResponse:
    """A completed checklist tied to one reservation."""

    id: Optional[str]
    vehicle_id: str
    reservation_id: str
    checklist_id: str
    answered_at: str
    answers: List[ChecklistAnswer] = field(default_factory=list)
    responder_name: Optional[str] = None
    responder_registration: Optional[str] = None
    departure_confirmed: bool = False


def parse_question_lines(text: str) -> List[ChecklistQuestion]:
    """
    Parse the checklist editor's one-question-per-line format.

    Each line is `text | type | required | note`; only the text is mandatory.
    Flags accept yes/no, true/false or 1/0. Raises ValueError on an unknown
    answer type.
    """
    questions = []
    for line in (text or "").splitlines():
        parts = [p.strip() for p in line.split("|")]
        if not parts[0]:
            continue
        answer_type = (parts[1] if len(parts) > 1 and parts[1] else "text").lower()
        if answer_type not in ANSWER_TYPES:
            raise ValueError(
                f"Unknown answer type '{answer_type}' (expected {', '.join(ANSWER_TYPES)})"
            )
        questions.append(
            ChecklistQuestion(
                id=str(len(questions)),
                text=parts[0],
                answer_type=answer_type,
                required=len(parts) > 2 and _is_truthy(parts[2]),
                allows_note=len(parts) > 3 and _is_truthy(parts[3]),
            )
        )
    return questions


def questions_to_lines(questions: List[ChecklistQuestion]) -> str:
    """Inverse of parse_question_lines, for pre-filling the editor."""
    return "\n".join(
        f"{q.text} | {q.answer_type} | {'yes' if q.required else 'no'} | "
        f"{'yes' if q.allows_note else 'no'}"
        for q in questions
    )


def _is_truthy(value: str) -> bool:
    return value.lower() in ("yes", "y", "true", "1", "required", "note")
