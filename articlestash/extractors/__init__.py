"""Extraction sub-package: manual selectors and the automatic cascade."""

from .auto import ReadabilityAutoExtractor
from .main_content import extract_main_content
from .metadata import extract_metadata
from .selector import extract_selector
from .urlnorm import absolutize_links, extract_domain, title_to_slug, url_to_slug

__all__ = [
    "ReadabilityAutoExtractor",
    "absolutize_links",
    "extract_domain",
    "extract_main_content",
    "extract_metadata",
    "extract_selector",
    "title_to_slug",
    "url_to_slug",
]
