from __future__ import annotations  # Re-export output_parsing public API

from .extract import extract_json, first_success, repair_json
from .scraper import SCORE_BUCKETS, ScrapedFields, scrape_fields

__all__ = [
    "extract_json",
    "first_success",
    "repair_json",
    "SCORE_BUCKETS",
    "ScrapedFields",
    "scrape_fields",
]
