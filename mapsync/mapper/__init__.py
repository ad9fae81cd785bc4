"""
Mapper Module

Field mappings and how they are established:
- Heuristic (normalized name) matching
- AI-assisted semantic suggestions
- Session workspace holding the mapping sets of a domain
"""

from .mapping import FieldMapping, SavedConfiguration, empty_mapping_set, normalize_mapping_set
from .heuristic import HeuristicMatcher, GroupMatchResult, normalize
from .semantic import SemanticMatcher, Suggestion, merge_suggestions, get_suggestion_provider

__all__ = [
    "FieldMapping",
    "SavedConfiguration",
    "empty_mapping_set",
    "normalize_mapping_set",
    "HeuristicMatcher",
    "GroupMatchResult",
    "normalize",
    "SemanticMatcher",
    "Suggestion",
    "merge_suggestions",
    "get_suggestion_provider",
]
