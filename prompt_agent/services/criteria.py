"""
Scoring criterion data types and the default B1 rubric.
"""
import math
from dataclasses import dataclass, field
from typing import List


@dataclass
class CriterionItem:
    """A single scored bullet under a criterion."""
    description: str
    max_score: float = 0.0


@dataclass
class Criterion:
    """
    A scoring criterion (e.g. Content) with its maximum score and items.

    Attributes:
        index: Display order, 1-based. 0 means the order is derived from the
            criterion's position in the parsed list.
        title: Criterion name.
        max_score: Maximum marks for the whole criterion.
        items: Scored bullets belonging to this criterion.
    """
    index: int = 0
    title: str = ''
    max_score: float = 0.0
    items: List[CriterionItem] = field(default_factory=list)


@dataclass(frozen=True)
class CriterionTemplate:
    """A rendered template for a single criterion."""
    title: str
    prompt: str
    max_score: float

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'prompt': self.prompt,
            'maxScore': self.max_score
        }


def format_score(score: float) -> str:
    """
    Format a score, keeping fractional marks like .5 or .25 but dropping a
    trailing .0.

    Examples:
        format_score(2.0)  -> '2'
        format_score(1.5)  -> '1.5'
        format_score(1.25) -> '1.25'
    """
    if not math.isfinite(score):
        return str(score)
    if score == int(score):
        return str(int(score))

    text = f"{score:.2f}"
    text = text.rstrip('0')
    text = text.rstrip('.')
    return text


def default_b1_criteria() -> List[Criterion]:
    """Return the reference B1 writing rubric (3 criteria, 15 marks in total)."""
    return [
        Criterion(
            index=1,
            title='Content',
            max_score=5,
            items=[
                CriterionItem('Is it about the topic stated in the task?', 1),
                CriterionItem('Does it address all the notes mentioned in the task? Or does it answer the question(s) in the task?', 2),
                CriterionItem('Are the answers of an appropriate length for the task?', 2),
            ]
        ),
        Criterion(
            index=2,
            title='Communicative Achievement & Organization',
            max_score=5,
            items=[
                CriterionItem('Does the text use appropriate language and phrases to respond to all the notes?', 2),
                CriterionItem('Are the ideas presented in a logical order?', 1),
                CriterionItem('Does the text use a variety of linking words or cohesive devices (such as although, and, but, because, so that, whether etc., and referencing language)?', 1),
                CriterionItem('Is the purpose of the answer clear (e.g., agreeing, disagreeing, giving opinion, explaining)?', 1),
            ]
        ),
        Criterion(
            index=3,
            title='Language Grammar and Vocabulary',
            max_score=5,
            items=[
                CriterionItem('Does the text use a range of vocabulary?', 1.5),
                CriterionItem('Does the text use simple grammar accurately (e.g., basic tenses and simple clauses)?', 1),
                CriterionItem('Does it use some complex grammatical structures (such as relative clauses, passives, modal forms and tense contrasts)?', 1.5),
                CriterionItem('Is the spelling accurate enough for the meaning to be clear?', 1),
            ]
        ),
    ]
