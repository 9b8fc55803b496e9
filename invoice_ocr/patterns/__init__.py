"""
Pattern Library Package.

Immutable regular expressions, synonym lists and known vendor templates
shared read-only by the scalar field extractor and the table strategies.

Author: ML Engineering Team
"""

from .library import (
    ColumnRole,
    PatternLibrary,
    build_pattern_library,
    get_pattern_library,
)
from .templates import BUILTIN_TEMPLATES, KnownTemplate, TemplateRegistry

__all__ = [
    'ColumnRole',
    'PatternLibrary',
    'build_pattern_library',
    'get_pattern_library',
    'BUILTIN_TEMPLATES',
    'KnownTemplate',
    'TemplateRegistry',
]
