"""
Full-content extraction.

This package resolves per-site extraction rules and applies them
to fetched article pages.
"""

from .extractor import ExtractedContent, extract_content, extract_readable
from .rules import (
    FileRuleSource,
    RuleSource,
    StaticRuleSource,
    load_rules,
    matching_rules,
    resolve_rule,
)

__all__ = [
    "ExtractedContent",
    "extract_content",
    "extract_readable",
    "FileRuleSource",
    "RuleSource",
    "StaticRuleSource",
    "load_rules",
    "matching_rules",
    "resolve_rule",
]
