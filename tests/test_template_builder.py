"""
Unit tests for building per-criterion templates from a combined template.
"""
import pytest

from prompt_agent.errors import NoCriteriaError
from prompt_agent.services.criteria import Criterion, CriterionItem
from prompt_agent.services.template_builder import (
    build_criterion_templates_from_raw,
    render_criterion_template,
)
from prompt_agent.services.template_parser import parse_raw_evaluation_template


TWO_CRITERIA_RAW = (
    "===INSTRUCTIONS===\n"
    "Please eva\n"
    "===CRITERIA===\n"
    "CRITERIA 1: A (0-2 marks)\n"
    "- A1 (0-1 marks)\n"
    "CRITERIA 2: B (0-3 marks)\n"
    "- B1 (0-2 marks)\n"
    "===QUESTION===\n"
    "Title\n"
    "• Q1?\n"
    "• Q2?\n"
    "===ANSWER===\n"
    "query\n"
)


class TestBuildCriterionTemplates:
    """Tests for build_criterion_templates_from_raw."""

    def test_one_template_per_criterion(self):
        templates = build_criterion_templates_from_raw(TWO_CRITERIA_RAW)

        assert len(templates) == 2
        assert templates[0].title == "A"
        assert templates[0].max_score == 2
        assert "CRITERIA 1: A (0-2 marks)" in templates[0].prompt
        assert "CRITERIA 2: B (0-3 marks)" in templates[1].prompt

    def test_each_template_contains_only_its_criterion(self):
        templates = build_criterion_templates_from_raw(TWO_CRITERIA_RAW)

        assert "CRITERIA 2" not in templates[0].prompt
        assert "- A1" not in templates[1].prompt

    def test_exact_rendering(self):
        """The rendered document keeps every section in order."""
        templates = build_criterion_templates_from_raw(TWO_CRITERIA_RAW)

        assert templates[0].prompt == (
            "===INSTRUCTIONS===\n"
            "Please eva\n"
            "===CRITERIA===\n"
            "CRITERIA 1: A (0-2 marks)\n"
            "- A1  (0-1 marks)\n"
            "===QUESTION===\n"
            "Title\n"
            "• Q1?\n"
            "• Q2?\n"
            "===ANSWER===\n"
            "query"
        )

    def test_empty_input_raises(self):
        with pytest.raises(NoCriteriaError, match="no criteria parsed"):
            build_criterion_templates_from_raw("")

    def test_no_criteria_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_criterion_templates_from_raw("===INSTRUCTIONS===\nonly instructions\n")

    def test_sorted_by_explicit_index(self):
        """Criteria are emitted in index order, not document order."""
        raw = (
            "===CRITERIA===\n"
            "CRITERIA 2: Second (0-3 marks)\n"
            "CRITERIA 1: First (0-2 marks)\n"
        )
        templates = build_criterion_templates_from_raw(raw)

        assert [t.title for t in templates] == ["First", "Second"]
        assert "CRITERIA 1: First" in templates[0].prompt

    def test_zero_index_uses_position(self):
        """Index 0 falls back to the 1-based position; ties keep document order."""
        raw = (
            "===CRITERIA===\n"
            "CRITERIA 2: Explicit two (0-3 marks)\n"
            "CRITERIA 0: Positional two (0-1 marks)\n"
            "CRITERIA 0: Positional three (0-1 marks)\n"
        )
        templates = build_criterion_templates_from_raw(raw)

        assert [t.title for t in templates] == ["Explicit two", "Positional two", "Positional three"]
        assert "CRITERIA 2: Positional two" in templates[1].prompt
        assert "CRITERIA 3: Positional three" in templates[2].prompt

    def test_decimal_scores_formatted(self):
        raw = (
            "===CRITERIA===\n"
            "CRITERIA 1: Grammar (0-5.0 marks)\n"
            "- Vocabulary (0-1.50 marks)\n"
        )
        templates = build_criterion_templates_from_raw(raw)

        assert "CRITERIA 1: Grammar (0-5 marks)" in templates[0].prompt
        assert "- Vocabulary  (0-1.5 marks)" in templates[0].prompt
        assert templates[0].max_score == 5.0

    def test_overflowing_score_still_builds(self):
        raw = "===CRITERIA===\nCRITERIA 1: A (0-" + "9" * 400 + " marks)\n"
        templates = build_criterion_templates_from_raw(raw)

        assert len(templates) == 1
        assert "CRITERIA 1: A (0-0 marks)" in templates[0].prompt

    def test_bullets_normalized(self):
        """Every bullet is re-emitted with the • marker."""
        raw = (
            "===CRITERIA===\nCRITERIA 1: A (0-2 marks)\n"
            "===QUESTION===\nTitle\n- dash bullet\n* star bullet\n•\n"
        )
        templates = build_criterion_templates_from_raw(raw)

        assert "• dash bullet\n• star bullet\n===ANSWER===" in templates[0].prompt

    def test_missing_question_and_answer(self):
        raw = "===CRITERIA===\nCRITERIA 1: A (0-2 marks)\n"
        templates = build_criterion_templates_from_raw(raw)

        assert templates[0].prompt == (
            "===INSTRUCTIONS===\n\n"
            "===CRITERIA===\n"
            "CRITERIA 1: A (0-2 marks)\n"
            "===QUESTION===\n"
            "===ANSWER===\n"
        )

    def test_round_trip(self):
        """Re-parsing each built template yields exactly its own criterion."""
        templates = build_criterion_templates_from_raw(TWO_CRITERIA_RAW)

        for template in templates:
            parsed = parse_raw_evaluation_template(template.prompt)
            assert len(parsed.criteria) == 1
            assert parsed.criteria[0].title == template.title
            assert parsed.criteria[0].max_score == template.max_score
            assert parsed.question_title == "Title"
            assert parsed.question_bullets == ["Q1?", "Q2?"]
            assert parsed.answer == "query"

    def test_to_dict(self):
        templates = build_criterion_templates_from_raw(TWO_CRITERIA_RAW)
        data = templates[1].to_dict()

        assert set(data) == {'title', 'prompt', 'maxScore'}
        assert data['title'] == "B"
        assert data['maxScore'] == 3


class TestRenderCriterionTemplate:
    """Tests for rendering a template from structured data."""

    def test_render_from_criterion(self):
        criterion = Criterion(index=7, title="Tone", max_score=2, items=[CriterionItem("Polite?", 0.5)])

        text = render_criterion_template(1, criterion, "  Be fair.  ", "", ["Point"], "")

        assert text == (
            "===INSTRUCTIONS===\n"
            "Be fair.\n"
            "===CRITERIA===\n"
            "CRITERIA 1: Tone (0-2 marks)\n"
            "- Polite?  (0-0.5 marks)\n"
            "===QUESTION===\n"
            "• Point\n"
            "===ANSWER===\n"
        )
