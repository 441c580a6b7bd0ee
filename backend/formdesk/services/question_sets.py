"""Question set construction helpers."""

# purpose: build ordered question sets owned by a single form version
# status: active
# depends_on: backend.formdesk.models, backend.formdesk.schemas.forms

from __future__ import annotations

from typing import Iterable

from .. import models
from ..schemas import QuestionPayload

OPTION_DELIMITER = ","


def split_options(options: str | None) -> list[str]:
    """Return the trimmed, non-empty entries of a delimited option list."""

    if not options:
        return []
    return [part.strip() for part in options.split(OPTION_DELIMITER) if part.strip()]


def build_questions(payloads: Iterable[QuestionPayload]) -> list[models.Question]:
    """Create fresh question rows in payload order with normalised option lists."""

    questions: list[models.Question] = []
    for position, payload in enumerate(payloads):
        questions.append(
            models.Question(
                position=position,
                label=payload.label,
                type=payload.type.value,
                is_required=payload.is_required,
                help_text=payload.help_text,
                placeholder=payload.placeholder,
                default_value=payload.default_value,
                validation_rules=payload.validation_rules,
                options=OPTION_DELIMITER.join(split_options(payload.options)) or None,
            )
        )
    return questions

