"""Tradeline Engine - Quality Gate

This layer scores a ParseResult and outputs BureauEvaluation (SSOT #2).
"""
from .coverage import (
    CoverageEvaluator,
    FieldDescriptor,
    NUMERIC_FIELDS,
    CATEGORICAL_DATE_FIELDS,
    has_gate_b_fields,
    compute_bureau_metrics,
    evaluate,
    analyze_bureau_document,
    analyze_equifax_document,
    tag_accounts,
)

__all__ = [
    "CoverageEvaluator",
    "FieldDescriptor",
    "NUMERIC_FIELDS",
    "CATEGORICAL_DATE_FIELDS",
    "has_gate_b_fields",
    "compute_bureau_metrics",
    "evaluate",
    "analyze_bureau_document",
    "analyze_equifax_document",
    "tag_accounts",
]
