"""Export pipeline: scope discovery, tree resolution and page delivery."""

from .models import ExportScope, ExportSummary, ScopeResult
from .tree_resolver import TreeResolver
from .export_pipeline import ExportPipeline

__all__ = [
    'ExportScope',
    'ExportSummary',
    'ScopeResult',
    'TreeResolver',
    'ExportPipeline',
]
