"""Data models for Confluence content and converted pages."""

from confluence_exporter.models.confluence_page import Attachment, ConfluencePage, Space
from confluence_exporter.models.conversion_result import ConversionResult
from confluence_exporter.models.converted_page import ConvertedPage, compute_uid

__all__ = [
    'Attachment',
    'ConfluencePage',
    'ConversionResult',
    'ConvertedPage',
    'Space',
    'compute_uid',
]
