"""
Parser for combined evaluation templates.

A combined template is split into sections by marker lines:

    ===INSTRUCTIONS===
    ===CRITERIA===
    ===QUESTION===
    ===ANSWER===

Criterion headers look like ``CRITERIA 1: Content (0-5 marks)`` and item lines
like ``- Is it about the topic?  (0-1 marks)``. Parsing is permissive: lines
that match nothing are dropped and unreadable numbers become 0.
"""
import logging
import math
import re
from typing import List, NamedTuple, Optional

from prompt_agent.services.criteria import Criterion, CriterionItem

logger = logging.getLogger(__name__)

INSTRUCTIONS_MARKER = '===INSTRUCTIONS==='
CRITERIA_MARKER = '===CRITERIA==='
QUESTION_MARKER = '===QUESTION==='
ANSWER_MARKER = '===ANSWER==='

SECTION_MARKERS = (INSTRUCTIONS_MARKER, CRITERIA_MARKER, QUESTION_MARKER, ANSWER_MARKER)

BULLET_PREFIXES = ('•', '-', '*')

CRITERION_PATTERN = re.compile(
    r'^CRITERIA\s+(\d+):\s+(.*?)\s*\((?:0-)?([0-9]+(?:\.[0-9]+)?)\s+marks?\)\s*$'
)
ITEM_PATTERN = re.compile(
    r'^-\s+(.*?)\s*\((?:0-)?([0-9]+(?:\.[0-9]+)?)\s+marks?\)\s*$'
)


class ParsedTemplate(NamedTuple):
    """Components of a combined evaluation template."""
    instructions: str
    criteria: List[Criterion]
    question_title: str
    question_bullets: List[str]
    answer: str


def _to_int(text: str) -> int:
    # Best effort: unreadable numbers count as 0 ("unspecified")
    try:
        return int(text)
    except (TypeError, ValueError):
        return 0


def _to_float(text: str) -> float:
    try:
        value = float(text)
    except (TypeError, ValueError):
        return 0.0
    # Digit runs too long for a float overflow to inf
    return value if math.isfinite(value) else 0.0


def _normalize_bullet(line: str) -> str:
    if line.startswith('•'):
        return line[len('•'):].strip()
    if line.startswith('-') or line.startswith('*'):
        return line.lstrip('-* ').strip()
    return line


def parse_raw_evaluation_template(raw: str) -> ParsedTemplate:
    """
    Parse a full combined template into its components.

    Args:
        raw: Template text containing any of the four section markers.

    Returns:
        ParsedTemplate(instructions, criteria, question_title,
        question_bullets, answer). Never raises; check ``criteria`` to see
        whether anything usable was found.
    """
    section = ''
    instructions = ''
    answer = ''
    question_title = ''
    question_bullets: List[str] = []
    criteria: List[Criterion] = []
    current: Optional[Criterion] = None

    for raw_line in (raw or '').split('\n'):
        line = raw_line.rstrip('\r')
        trimmed = line.strip()

        if trimmed in SECTION_MARKERS:
            section = trimmed
            continue

        if not trimmed:
            # Blank lines are only kept in instructions and answer
            if section == INSTRUCTIONS_MARKER:
                instructions += '\n'
            elif section == ANSWER_MARKER:
                answer += '\n'
            continue

        if section == INSTRUCTIONS_MARKER:
            if instructions:
                instructions += '\n'
            instructions += trimmed

        elif section == CRITERIA_MARKER:
            match = CRITERION_PATTERN.match(trimmed)
            if match:
                if current is not None:
                    criteria.append(current)
                current = Criterion(
                    index=_to_int(match.group(1)),
                    title=match.group(2),
                    max_score=_to_float(match.group(3))
                )
                continue

            match = ITEM_PATTERN.match(trimmed)
            if match:
                if current is None:
                    logger.debug(f"Dropping item line before any criterion header: {trimmed!r}")
                    continue
                current.items.append(CriterionItem(
                    description=match.group(1),
                    max_score=_to_float(match.group(2))
                ))
            else:
                logger.debug(f"Ignoring unrecognised criteria line: {trimmed!r}")

        elif section == QUESTION_MARKER:
            is_bullet = trimmed.startswith(BULLET_PREFIXES)
            if not is_bullet and not question_title:
                question_title = trimmed
            else:
                # Later non-bullet lines are kept as extra bullets
                question_bullets.append(_normalize_bullet(trimmed))

        elif section == ANSWER_MARKER:
            if answer:
                answer += '\n'
            answer += line

    if current is not None:
        criteria.append(current)

    return ParsedTemplate(
        instructions=instructions.strip(),
        criteria=criteria,
        question_title=question_title,
        question_bullets=[bullet.strip() for bullet in question_bullets],
        answer=answer.strip()
    )
