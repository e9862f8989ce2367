from .page_classifier import PageClassifier, classify_page

__all__ = ["PageClassifier", "classify_page"]
