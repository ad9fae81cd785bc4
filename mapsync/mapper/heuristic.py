"""Heuristic mapping engine for auto-detecting header -> field matches."""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from mapsync.mapper.mapping import FieldMapping, MappingSet
from mapsync.schema.models import SchemaCatalog, TargetField

logger = logging.getLogger(__name__)


def normalize(text: str) -> str:
    """Lowercase and strip everything outside [a-z0-9]."""
    return re.sub(r"[^a-z0-9]", "", str(text).lower())


def is_abbreviation(short: str, full: str) -> bool:
    """
    Check whether ``short`` abbreviates ``full``.

    Both are expected normalized. ``short`` must start with the same character
    and appear in ``full`` as an ordered subsequence (``fname`` / ``firstname``).
    """
    if len(short) < 2 or len(short) > len(full) or short[0] != full[0]:
        return False
    remaining = iter(full)
    return all(char in remaining for char in short)


@dataclass
class GroupMatchResult:
    """Outcome of auto-matching every schema in a mapping group."""

    group_id: str
    mappings: Dict[str, MappingSet] = field(default_factory=dict)
    matched_fields: int = 0

    @property
    def tables(self) -> int:
        return len(self.mappings)


class HeuristicMatcher:
    """
    Auto-map source headers to target fields by normalized name comparison.

    Matching is deliberately permissive: a header matches when its normalized
    form equals, contains, or is contained in the field's normalized label or
    column name. The first qualifying header wins; there is no scoring. Short
    headers can therefore over-match.
    """

    def match_field(self, headers: Sequence[str], target_field: TargetField) -> Optional[str]:
        """Find the first header matching one target field."""
        targets = [t for t in (normalize(target_field.label), normalize(target_field.column_name)) if t]
        candidates = [(h, normalize(h)) for h in headers]
        candidates = [(h, n) for h, n in candidates if n]

        # Exact / substring match
        for header, norm in candidates:
            if any(norm == t or norm in t or t in norm for t in targets):
                return header

        # Abbreviation match
        for header, norm in candidates:
            if any(is_abbreviation(norm, t) for t in targets):
                return header

        return None

    def auto_match(
        self,
        headers: Sequence[str],
        target_fields: Sequence[TargetField],
    ) -> Dict[str, Optional[str]]:
        """
        Propose a header for every target field.

        Args:
            headers: Source headers in file order
            target_fields: Target field definitions

        Returns:
            {target_field_id: matched header or None}
        """
        return {f.id: self.match_field(headers, f) for f in target_fields}

    def auto_map_group(
        self,
        catalog: SchemaCatalog,
        group_id: str,
        headers: Sequence[str],
    ) -> GroupMatchResult:
        """Build fresh mapping sets (empty pipelines) for every schema in a group."""
        result = GroupMatchResult(group_id=group_id)

        for schema in catalog.schemas_in_group(group_id):
            matches = self.auto_match(headers, schema.fields)
            result.mappings[schema.id] = [
                FieldMapping(target_field_id=f.id, source_header=matches[f.id])
                for f in schema.fields
            ]
            result.matched_fields += sum(1 for h in matches.values() if h)

        logger.info(
            f"Auto-mapped {result.matched_fields} fields across {result.tables} tables "
            f"in group '{group_id}'"
        )
        return result
