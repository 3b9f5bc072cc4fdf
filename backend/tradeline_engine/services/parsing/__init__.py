"""Tradeline Engine - Parsing Layer

This layer converts raw bureau text into a ParseResult (SSOT #1).
All downstream modules MUST use ParseResult exclusively.
"""
from .grammar import parse_money, parse_month, parse_status, parse_ownership
from .labels import LabelKey, LabelNormalizer, normalize_label
from .text_parser import (
    BureauTextParser, LineStateMachine, Section,
    parse_bureau_text, parse_equifax_text,
)

__all__ = [
    "parse_money", "parse_month", "parse_status", "parse_ownership",
    "LabelKey", "LabelNormalizer", "normalize_label",
    "BureauTextParser", "LineStateMachine", "Section",
    "parse_bureau_text", "parse_equifax_text",
]
