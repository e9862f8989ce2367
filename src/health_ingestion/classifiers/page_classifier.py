# ============================================================================
# src/health_ingestion/classifiers/page_classifier.py
# ============================================================================
"""
Page Classification

Tags one page of report text with the content types it appears to contain.
Multi-label: a page with patient header and biomarker table gets both tags.

Patterns are evaluated in the fixed order of CLASSIFICATION_PATTERNS,
case-insensitively, over the whole page text. No match -> {UNKNOWN}.
"""

import logging
from typing import FrozenSet, Iterable, Optional, Pattern, Tuple

from ..constants.content_types import ContentType, CLASSIFICATION_PATTERNS


class PageClassifier:
    """
    Keyword/regex page classifier.

    Stateless apart from the pattern table; safe to share across runs.
    """

    def __init__(
        self,
        patterns: Optional[Iterable[Tuple[ContentType, Pattern[str]]]] = None
    ):
        self.logger = logging.getLogger(__name__)
        self.patterns = tuple(patterns) if patterns is not None else CLASSIFICATION_PATTERNS

    def classify(self, raw_text: str) -> FrozenSet[ContentType]:
        """
        Detect content types present on a page.

        Args:
            raw_text: Flattened page text

        Returns:
            Non-empty frozenset of ContentType
        """
        detected = [
            content_type
            for content_type, pattern in self.patterns
            if pattern.search(raw_text or "")
        ]

        if not detected:
            return frozenset({ContentType.UNKNOWN})

        return frozenset(detected)

    def ordered(self, types: Iterable[ContentType]) -> Tuple[ContentType, ...]:
        """Return types in pattern-evaluation order (UNKNOWN last)."""
        types = set(types)
        ordered = [ct for ct, _ in self.patterns if ct in types]
        if ContentType.UNKNOWN in types:
            ordered.append(ContentType.UNKNOWN)
        return tuple(ordered)


_default_classifier = PageClassifier()


def classify_page(raw_text: str) -> FrozenSet[ContentType]:
    """Module-level shortcut using the default pattern table."""
    return _default_classifier.classify(raw_text)
