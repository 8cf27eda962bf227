"""
Extraction utilities for ReachOut.

Provides:
- Company details (page title, careers page) from a candidate website
- Contact email extraction from text nodes and mailto: links
"""

from reachout.extract.company import parse_company_details, resolve_company, resolve_url
from reachout.extract.emails import (
    extract_emails_from_html,
    filter_emails,
    is_contact_email,
    scan_emails,
)

__all__ = [
    "parse_company_details",
    "resolve_company",
    "resolve_url",
    "extract_emails_from_html",
    "filter_emails",
    "is_contact_email",
    "scan_emails",
]
