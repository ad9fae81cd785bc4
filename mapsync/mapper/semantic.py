"""
AI-assisted semantic matching.

A suggestion provider proposes header -> field matches based on business
meaning. Providers may fail in any way; ``SemanticMatcher`` turns every
failure into an empty suggestion list so callers treat it as "no changes".
"""
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from mapsync.mapper.heuristic import HeuristicMatcher, normalize
from mapsync.mapper.mapping import FieldMapping, MappingSet, find_mapping
from mapsync.schema.models import SchemaDefinition, TargetField

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Suggestion:
    """One proposed match for a target field."""

    target_field_id: str
    source_header: Optional[str] = None
    confidence: Optional[float] = None
    semantic_reasoning: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Suggestion":
        confidence = data.get("confidence")
        if confidence is not None:
            confidence = min(1.0, max(0.0, float(confidence)))
        return cls(
            target_field_id=str(data["targetFieldId"]),
            source_header=data.get("sourceHeader") or None,
            confidence=confidence,
            semantic_reasoning=str(data.get("semanticReasoning") or ""),
        )


class SuggestionProvider(ABC):
    """Source of raw semantic suggestions."""

    @abstractmethod
    def suggest(self, headers: Sequence[str], schema: SchemaDefinition) -> List[Dict[str, Any]]:
        """Return raw suggestions: [{targetFieldId, sourceHeader?, confidence?, semanticReasoning}]."""
        pass


class GeminiSuggestionProvider(SuggestionProvider):
    """Suggestion provider backed by Gemini through google-genai."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self.api_key = api_key
        self.model = model
        self._client = None

    @property
    def client(self):
        """Gemini client, created on first use so setup errors surface from ``suggest``."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def suggest(self, headers: Sequence[str], schema: SchemaDefinition) -> List[Dict[str, Any]]:
        from google.genai import types

        response = self.client.models.generate_content(
            model=self.model,
            contents=self._build_prompt(headers, schema),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=self._response_schema(types),
            ),
        )
        return json.loads(self._extract_json(response.text))

    def _build_prompt(self, headers: Sequence[str], schema: SchemaDefinition) -> str:
        target_fields = ", ".join(
            f"{f.id} ({f.label}: {f.description})" for f in schema.fields
        )
        return f"""
Perform an intelligent semantic mapping between source spreadsheet headers and
target data fields for a {schema.name} data store.

Rules:
1. Do NOT map fields just because their types match ('LastName' is text, but it
   is not a 'Contact/Phone' field).
2. Analyze the context of the entity ({schema.name}).
3. Identify synonyms and abbreviations ('Dept' matches 'Department', 'FName'
   matches 'First Name').
4. Return at most one suggestion per target field. Omit sourceHeader when no
   header is a confident match.

Source headers: {", ".join(headers)}
Target fields: {target_fields}

Return a JSON array. For each target field give the best semantic match, a
0 to 1 confidence, and a 'semanticReasoning' explaining why it fits or why it
is a risky match.
"""

    @staticmethod
    def _response_schema(types):
        return types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "targetFieldId": types.Schema(type=types.Type.STRING),
                    "sourceHeader": types.Schema(type=types.Type.STRING),
                    "confidence": types.Schema(
                        type=types.Type.NUMBER,
                        description="0 to 1 score of semantic fit",
                    ),
                    "semanticReasoning": types.Schema(
                        type=types.Type.STRING,
                        description="Detailed contextual explanation",
                    ),
                },
                required=["targetFieldId", "semanticReasoning"],
            ),
        )

    @staticmethod
    def _extract_json(text: str) -> str:
        match = re.search(r"\[.*\]", text or "", re.DOTALL)
        if not match:
            raise ValueError("No JSON array found in Gemini response")
        return match.group(0)


class MockSuggestionProvider(SuggestionProvider):
    """Offline provider using a synonym table plus the heuristic matcher."""

    SYNONYMS = {
        "dept": ["department"],
        "fname": ["firstname"],
        "lname": ["lastname"],
        "surname": ["lastname"],
        "mail": ["email"],
        "contact": ["email", "phone"],
        "datejoined": ["hiredate", "startdate"],
        "joined": ["hiredate"],
        "empno": ["employeeid", "empid"],
        "employeenumber": ["employeeid", "empid"],
        "salary": ["grosspay", "grossamount"],
        "vendor": ["supplier"],
        "amt": ["amount", "totalamount"],
        "inv": ["invoice", "invoicenumber"],
    }

    def __init__(self):
        self.heuristic = HeuristicMatcher()

    def suggest(self, headers: Sequence[str], schema: SchemaDefinition) -> List[Dict[str, Any]]:
        suggestions = []
        for target_field in schema.fields:
            suggestions.append(self._suggest_field(headers, target_field))
        return suggestions

    def _suggest_field(self, headers: Sequence[str], target_field: TargetField) -> Dict[str, Any]:
        header = self.heuristic.match_field(headers, target_field)
        if header:
            return self._suggestion(target_field, header, 0.9, f"'{header}' matches the name of {target_field.label}")

        names = {normalize(target_field.label), normalize(target_field.column_name)}
        for header in headers:
            if names & set(self.SYNONYMS.get(normalize(header), [])):
                return self._suggestion(target_field, header, 0.75, f"'{header}' is a known synonym of {target_field.label}")

        words = {normalize(w) for w in target_field.description.split()}
        for header in headers:
            if normalize(header) in words:
                return self._suggestion(target_field, header, 0.5, f"'{header}' appears in the description of {target_field.label}")

        return {
            "targetFieldId": target_field.id,
            "semanticReasoning": f"No header carries the meaning of {target_field.label}",
        }

    @staticmethod
    def _suggestion(target_field, header, confidence, reasoning):
        return {
            "targetFieldId": target_field.id,
            "sourceHeader": header,
            "confidence": confidence,
            "semanticReasoning": reasoning,
        }


def get_suggestion_provider(
    use_real_genai: bool = False,
    api_key: Optional[str] = None,
    model: str = "gemini-2.5-flash",
) -> SuggestionProvider:
    """Pick the Gemini provider or the offline mock."""
    if use_real_genai:
        if not api_key:
            raise ValueError("Gemini API key required for real GenAI")
        return GeminiSuggestionProvider(api_key, model=model)
    return MockSuggestionProvider()


class SemanticMatcher:
    """Sanitizing wrapper around a suggestion provider."""

    def __init__(self, provider: SuggestionProvider):
        self.provider = provider

    def suggest(self, headers: Sequence[str], schema: SchemaDefinition) -> List[Suggestion]:
        """
        Ask the provider for suggestions.

        Any provider failure (timeout, transport error, malformed response)
        yields an empty list.

        Returns:
            At most one Suggestion per known target field
        """
        try:
            raw = self.provider.suggest(list(headers), schema)
        except Exception as e:
            logger.warning(f"Semantic suggestion failed, no changes applied: {e}")
            return []

        if not isinstance(raw, list):
            logger.warning(f"Semantic suggestion returned {type(raw).__name__}, expected list")
            return []

        known_headers = set(headers)
        seen = set()
        suggestions = []

        for item in raw:
            try:
                suggestion = Suggestion.from_dict(item)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.debug(f"Skipping malformed suggestion {item!r}: {e}")
                continue

            if schema.get_field(suggestion.target_field_id) is None:
                continue
            if suggestion.target_field_id in seen:
                continue
            if suggestion.source_header and suggestion.source_header not in known_headers:
                suggestion = Suggestion(
                    target_field_id=suggestion.target_field_id,
                    semantic_reasoning=suggestion.semantic_reasoning,
                )

            seen.add(suggestion.target_field_id)
            suggestions.append(suggestion)

        return suggestions


@dataclass
class MergeResult:
    """Mapping set after merging suggestions, plus what was held back."""

    mappings: MappingSet
    applied: List[str] = field(default_factory=list)
    held_back: List[Suggestion] = field(default_factory=list)


def merge_suggestions(
    schema: SchemaDefinition,
    existing: Sequence[FieldMapping],
    suggestions: Sequence[Suggestion],
    min_confidence: float = 0.0,
) -> MergeResult:
    """
    Merge suggestions into an existing mapping set.

    A suggestion replaces the header/confidence/reasoning of a field only when
    it carries a header and meets ``min_confidence``; the field's pipeline is
    always kept. Fields without mapping or suggestion become placeholders.
    """
    by_field = {s.target_field_id: s for s in suggestions}
    result = MergeResult(mappings=[])

    for target_field in schema.fields:
        current = find_mapping(list(existing), target_field.id) or FieldMapping(target_field_id=target_field.id)
        suggestion = by_field.get(target_field.id)

        if suggestion and suggestion.source_header:
            confidence = suggestion.confidence
            if confidence is not None and confidence < min_confidence:
                result.held_back.append(suggestion)
            else:
                current = current.with_header(
                    suggestion.source_header,
                    semantic_reasoning=suggestion.semantic_reasoning,
                    confidence=confidence,
                )
                result.applied.append(target_field.id)

        result.mappings.append(current)

    return result
