"""
Extraction rule sets.

Rules are kept in an ordered list; the first rule whose URL pattern
matches a page wins. Rule files are YAML or JSON lists of mappings:

    - name: example-blog
      url: '^https?://blog\\.example\\.com/'
      content: 'article .entry-body'
      next_link: 'a[rel=next]'

The long key names (``url_pattern``, ``content_selector``,
``next_link_selector``) are accepted as well.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import json
import logging
from pathlib import Path
import re
from typing import Any, Iterable, Iterator

import yaml

from ..core.types import ExtractionRule
from ..errors import RuleLoadError

logger = logging.getLogger(__name__)


def try_match(pattern: str, url: str) -> bool:
    """Match a rule pattern against a URL; invalid patterns never match."""
    try:
        return re.search(pattern, url) is not None
    except re.error:
        return False


def matching_rules(rules: Iterable[ExtractionRule], url: str) -> Iterator[ExtractionRule]:
    """Yield every rule matching ``url``, in rule-set order."""
    for rule in rules:
        if try_match(rule.url_pattern, url):
            yield rule


def resolve_rule(rules: Iterable[ExtractionRule], url: str) -> ExtractionRule | None:
    """Return the first rule whose URL pattern matches ``url``."""
    return next(matching_rules(rules, url), None)


def load_rules(path: str | Path) -> list[ExtractionRule]:
    """Load an ordered rule list from a YAML or JSON file.

    Items missing a pattern or content selector are skipped with a warning.

    Raises:
        RuleLoadError: If the file cannot be read or is not a list
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise RuleLoadError(f"Cannot load rules from {path}: {exc}") from exc

    if raw is None:
        return []
    if not isinstance(raw, list):
        raise RuleLoadError(f"Rule file {path} must contain a list")
    return parse_rules(raw)


def parse_rules(items: list[Any]) -> list[ExtractionRule]:
    rules: list[ExtractionRule] = []
    for index, item in enumerate(items):
        rule = _parse_rule(item)
        if rule is None:
            logger.warning("Skipping malformed extraction rule #%d", index)
            continue
        rules.append(rule)
    return rules


def _parse_rule(item: Any) -> ExtractionRule | None:
    if not isinstance(item, dict):
        return None
    pattern = item.get("url_pattern") or item.get("url")
    content = item.get("content_selector") or item.get("content")
    if not pattern or not content:
        return None
    return ExtractionRule(
        url_pattern=str(pattern),
        content_selector=str(content),
        next_link_selector=item.get("next_link_selector") or item.get("next_link") or None,
        name=item.get("name"),
    )


class RuleSource(ABC):
    """Supplies the ordered rule set used for full-content extraction."""

    @abstractmethod
    async def get_rules(self) -> list[ExtractionRule]:
        raise NotImplementedError


class StaticRuleSource(RuleSource):
    def __init__(self, rules: Iterable[ExtractionRule] = ()):
        self._rules = list(rules)

    async def get_rules(self) -> list[ExtractionRule]:
        return self._rules


class FileRuleSource(RuleSource):
    """Loads rules from a file once and serves the cached list afterwards."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._rules: list[ExtractionRule] | None = None

    async def get_rules(self) -> list[ExtractionRule]:
        if self._rules is None:
            self._rules = load_rules(self.path)
            logger.info("Loaded %d extraction rules from %s", len(self._rules), self.path)
        return self._rules

    def reload(self) -> None:
        self._rules = None
