# ============================================================================
# src/health_ingestion/core/pipeline.py
# ============================================================================
"""
Lab Report Extraction Pipeline

PDF -> PageTextExtractor -> PageClassifier -> SectionExtractors (per page)
    -> Consolidator -> ConsolidatedReport

Only an unreadable PDF fails the run (PDFExtractionError); every per-field
regex miss just leaves that field empty.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..classifiers.page_classifier import PageClassifier
from ..extractors.comprehensive_extractor import detect_language
from ..extractors.page_text_extractor import PageTextExtractor, flatten_text
from ..extractors.section_extractors import SectionExtractors
from .consolidator import Consolidator
from .models import ConsolidatedReport, PageExtraction
from src.utils.logging import log_performance

logger = logging.getLogger(__name__)

# (processed_pages, total_pages, message)
ProgressCallback = Callable[[int, int, str], None]


class LabReportPipeline:
    """
    Runs the extraction stages for one document.

    Components are injectable; defaults are built from settings.
    """

    def __init__(
        self,
        text_extractor: Optional[PageTextExtractor] = None,
        classifier: Optional[PageClassifier] = None,
        sections: Optional[SectionExtractors] = None,
        consolidator: Optional[Consolidator] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.text_extractor = text_extractor or PageTextExtractor()
        self.classifier = classifier or PageClassifier()
        self.sections = sections or SectionExtractors()
        self.consolidator = consolidator or Consolidator()

    @log_performance(logger, "PDF extraction")
    def process_pdf(
        self,
        source: Union[Path, str, bytes],
        progress: Optional[ProgressCallback] = None,
    ) -> ConsolidatedReport:
        """
        Extract a consolidated report from a PDF.

        Args:
            source: PDF path or bytes
            progress: Optional callback invoked after each page

        Raises:
            PDFExtractionError: the PDF could not be read
        """
        page_texts = self.text_extractor.extract_detailed(source)
        report = self.process_pages(page_texts.texts, progress=progress)

        report.metadata["extractionMethod"] = page_texts.method
        report.metadata["lowTextPages"] = page_texts.low_text_pages
        if not isinstance(source, bytes):
            report.metadata["sourceFile"] = Path(source).name
        return report

    def process_pages(
        self,
        page_texts: Sequence[str],
        progress: Optional[ProgressCallback] = None,
    ) -> ConsolidatedReport:
        """Classify, extract and consolidate already-extracted page texts."""
        pages = self.extract_pages(page_texts, progress=progress)
        report = self.consolidator.consolidate(pages)
        report.metadata["language"] = detect_language(" ".join(p.raw_text for p in pages))
        return report

    def extract_pages(
        self,
        page_texts: Sequence[str],
        progress: Optional[ProgressCallback] = None,
    ) -> List[PageExtraction]:
        total = len(page_texts)
        pages = []

        for index, text in enumerate(page_texts):
            page = self.extract_page(index + 1, text)
            pages.append(page)

            message = (
                f"Page {page.page_number}/{total}: "
                f"{', '.join(page.sorted_types())} ({page.section_count} sections)"
            )
            self.logger.info(message)
            if progress is not None:
                progress(index + 1, total, message)

        return pages

    def extract_page(self, page_number: int, text: str) -> PageExtraction:
        raw_text = flatten_text(text)
        detected = self.classifier.classify(raw_text)
        extracted = self.sections.extract(raw_text, detected)
        return PageExtraction(
            page_number=page_number,
            raw_text=raw_text,
            detected_types=detected,
            extracted_data=extracted,
        )

    def debug_info(self, page_texts: Sequence[str]) -> Dict[str, Any]:
        """
        Per-page classification and counts, for troubleshooting a layout.
        """
        pages = self.extract_pages(page_texts)
        report = self.consolidator.consolidate(pages)

        return {
            "totalPages": len(pages),
            "pages": [
                {
                    "page": page.page_number,
                    "types": page.sorted_types(),
                    "textLength": len(page.raw_text),
                    "sections": sorted(page.extracted_data),
                    "preview": page.raw_text[:200],
                }
                for page in pages
            ],
            "consolidated": {
                "bacterialEntries": len(report.bacterial_taxonomy),
                "fungalEntries": len(report.fungal_analysis),
                "biomarkers": sorted(report.biomarkers),
                "patientFields": sorted(report.patient_info),
                "conflicts": len(report.metadata.get("conflicts", [])),
            },
        }
