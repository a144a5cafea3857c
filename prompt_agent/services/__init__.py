"""
Prompt agent services.
"""
from prompt_agent.services.criteria import (
    Criterion,
    CriterionItem,
    CriterionTemplate,
    default_b1_criteria,
    format_score
)
from prompt_agent.services.template_parser import ParsedTemplate, parse_raw_evaluation_template
from prompt_agent.services.template_builder import build_criterion_templates_from_raw, render_criterion_template

__all__ = [
    'Criterion',
    'CriterionItem',
    'CriterionTemplate',
    'default_b1_criteria',
    'format_score',
    'ParsedTemplate',
    'parse_raw_evaluation_template',
    'build_criterion_templates_from_raw',
    'render_criterion_template'
]
