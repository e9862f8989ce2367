# ============================================================================
# src/health_ingestion/core/consolidator.py
# ============================================================================
"""
Report Consolidation

Merges per-page extractions into one ConsolidatedReport:
- Scalar sections (patient info, functional tests, biomarkers, microbiota
  overview): shallow merge, later pages overwrite earlier ones per key.
  A field the page did not find (None) is not a write.
- List sections (bacterial taxonomy, fungi): concatenated in page order,
  deduplicated by composite key (first wins), sorted by percentage desc.

Overwrites of an already-set scalar with a different value are kept in
metadata["conflicts"] so disagreements between pages stay visible.
"""

import logging
from typing import Any, Dict, List, Sequence

from .models import (
    ConsolidatedReport,
    PageExtraction,
    dedupe_by_key,
    sort_by_percentage,
    PATIENT_INFO,
    FUNCTIONAL_TESTS,
    BIOMARKERS,
    MICROBIOTA_OVERVIEW,
    BACTERIAL_TAXONOMY,
    FUNGAL_ANALYSIS,
)

logger = logging.getLogger(__name__)

# Section key -> ConsolidatedReport attribute
_SCALAR_TARGETS = {
    PATIENT_INFO: "patient_info",
    FUNCTIONAL_TESTS: "functional_tests",
    BIOMARKERS: "biomarkers",
    MICROBIOTA_OVERVIEW: "microbiota_overview",
}


class Consolidator:
    """
    Document-level merge of PageExtraction results.

    Always succeeds; no pages gives an all-empty report.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def consolidate(self, pages: Sequence[PageExtraction]) -> ConsolidatedReport:
        report = ConsolidatedReport()
        conflicts: List[Dict[str, Any]] = []
        bacteria = []
        fungi = []

        for page in pages:
            data = page.extracted_data

            for section, attribute in _SCALAR_TARGETS.items():
                if section in data:
                    self._merge_scalar(
                        getattr(report, attribute), data[section],
                        page.page_number, section, conflicts
                    )

            bacteria.extend(data.get(BACTERIAL_TAXONOMY, ()))
            fungi.extend(data.get(FUNGAL_ANALYSIS, ()))

        report.bacterial_taxonomy = sort_by_percentage(dedupe_by_key(bacteria))
        report.fungal_analysis = sort_by_percentage(dedupe_by_key(fungi))

        report.metadata = {
            "totalPages": len(pages),
            "pagesAnalyzed": [
                {
                    "page": page.page_number,
                    "types": page.sorted_types(),
                    "dataCount": page.section_count,
                }
                for page in pages
            ],
            "conflicts": conflicts,
        }

        self.logger.info(
            f"Consolidated {len(pages)} pages: {len(report.bacterial_taxonomy)} taxonomy entries "
            f"({len(bacteria) - len(report.bacterial_taxonomy)} duplicates dropped), "
            f"{len(report.fungal_analysis)} fungi, {len(report.biomarkers)} biomarkers"
        )
        if conflicts:
            self.logger.warning(f"{len(conflicts)} scalar field(s) overwritten by later pages")

        return report

    def _merge_scalar(
        self,
        target: Dict[str, Any],
        source: Dict[str, Any],
        page_number: int,
        section: str,
        conflicts: List[Dict[str, Any]]
    ) -> None:
        for field_name, value in source.items():
            if value is None:
                continue

            previous = target.get(field_name)
            if previous is not None and previous != value:
                conflicts.append({
                    "page": page_number,
                    "section": section,
                    "field": field_name,
                    "previous": _plain(previous),
                    "new": _plain(value),
                })

            target[field_name] = value


def _plain(value: Any) -> Any:
    return value.to_dict() if hasattr(value, "to_dict") else value
