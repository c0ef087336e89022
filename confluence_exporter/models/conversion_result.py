"""Conversion result data model."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ConversionResult:
    """Result of storage-format to markdown conversion.

    Attributes:
        markdown: Converted markdown content
        warnings: Unsupported macros or constructs that were degraded to text
    """
    markdown: str
    warnings: List[str] = field(default_factory=list)
