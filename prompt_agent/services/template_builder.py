"""
Builds one self-contained evaluation template per criterion.
"""
import logging
from typing import List, Sequence

from prompt_agent.errors import NoCriteriaError
from prompt_agent.services.criteria import Criterion, CriterionTemplate, format_score
from prompt_agent.services.template_parser import (
    ANSWER_MARKER,
    CRITERIA_MARKER,
    INSTRUCTIONS_MARKER,
    QUESTION_MARKER,
    parse_raw_evaluation_template,
)

logger = logging.getLogger(__name__)


def _clean_bullets(bullets: Sequence[str]) -> List[str]:
    """Strip leftover bullet markers; drop bullets that end up empty."""
    cleaned = []
    for bullet in bullets:
        text = bullet.strip().lstrip('•-* \t')
        if text:
            cleaned.append(text)
    return cleaned


def render_criterion_template(
    order: int,
    criterion: Criterion,
    instructions: str,
    question_title: str,
    bullets: Sequence[str],
    answer: str
) -> str:
    """
    Render a single-criterion template document.

    Args:
        order: Number shown in the CRITERIA header.
        criterion: The criterion to emit in the scoring block.
        instructions: Instructions text (trimmed before rendering).
        question_title: Question title line, omitted when empty.
        bullets: Question bullets without markers.
        answer: Answer text, omitted when empty.

    Returns:
        The rendered template text.
    """
    lines = [
        INSTRUCTIONS_MARKER,
        instructions.strip(),
        CRITERIA_MARKER,
        f"CRITERIA {order}: {criterion.title} (0-{format_score(criterion.max_score)} marks)",
    ]
    for item in criterion.items:
        lines.append(f"- {item.description}  (0-{format_score(item.max_score)} marks)")

    lines.append(QUESTION_MARKER)
    if question_title:
        lines.append(question_title)
    for bullet in bullets:
        if bullet:
            lines.append(f"• {bullet}")

    lines.append(ANSWER_MARKER)
    text = '\n'.join(lines) + '\n'
    if answer:
        text += answer
    return text


def build_criterion_templates_from_raw(raw: str) -> List[CriterionTemplate]:
    """
    Split a combined template into one template per criterion.

    Criteria are emitted in index order. A criterion without an explicit index
    takes its 1-based position in the document; ties keep document order.

    Args:
        raw: Combined template text.

    Returns:
        List of CriterionTemplate, one per parsed criterion.

    Raises:
        NoCriteriaError: If no criterion header could be parsed.
    """
    parsed = parse_raw_evaluation_template(raw)
    if not parsed.criteria:
        raise NoCriteriaError()

    bullets = _clean_bullets(parsed.question_bullets)

    ordered = []
    for position, criterion in enumerate(parsed.criteria, 1):
        order = criterion.index if criterion.index != 0 else position
        ordered.append((order, criterion))
    # sorted() is stable, so duplicate orders keep document order
    ordered = sorted(ordered, key=lambda pair: pair[0])

    templates = []
    for order, criterion in ordered:
        prompt = render_criterion_template(
            order,
            criterion,
            parsed.instructions,
            parsed.question_title,
            bullets,
            parsed.answer
        )
        templates.append(CriterionTemplate(
            title=criterion.title,
            prompt=prompt,
            max_score=criterion.max_score
        ))

    logger.info(f"Built {len(templates)} criterion templates")
    return templates
