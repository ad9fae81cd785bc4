"""Semantic type inference over raw column values."""
from typing import Any, Dict, List, Sequence

from mapsync.schema.models import SemanticType
from mapsync.schema.values import is_null, parse_number, parse_timestamp, to_text

BOOLEAN_TOKENS = frozenset(["true", "false", "yes", "no", "1", "0"])


def _is_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    return to_text(value).lower() in BOOLEAN_TOKENS


def _is_numeric(value: Any) -> bool:
    return parse_number(value) is not None


def _is_timestamp(value: Any) -> bool:
    return parse_timestamp(value) is not None


class TypeInferencer:
    """
    Infers one semantic type per column.

    Rules are checked in strict priority order and every remaining value must
    satisfy a rule for it to win. BOOLEAN comes before NUMERIC, so a column of
    only "1"/"0" is BOOLEAN.
    """

    RULES: List[tuple] = [
        (SemanticType.BOOLEAN, _is_boolean),
        (SemanticType.NUMERIC, _is_numeric),
        (SemanticType.TIMESTAMP, _is_timestamp),
    ]

    def infer(self, values: Sequence[Any]) -> SemanticType:
        """
        Infer the semantic type of a column.

        Args:
            values: Raw column values (None and "" are ignored)

        Returns:
            SemanticType: TEXT when no rule matches or nothing is left
        """
        present = [v for v in values if not is_null(v)]
        if not present:
            return SemanticType.TEXT

        for semantic_type, predicate in self.RULES:
            if all(predicate(v) for v in present):
                return semantic_type

        return SemanticType.TEXT

    def infer_columns(
        self,
        headers: Sequence[str],
        rows: Sequence[Dict[str, Any]],
    ) -> Dict[str, SemanticType]:
        """Infer every column of a table: {header: type}."""
        return {h: self.infer([row.get(h) for row in rows]) for h in headers}
