"""Transformer registry and pipeline evaluator."""
import logging
import re
from typing import Any, Callable, Dict, Iterable, Optional, Type

from mapsync.schema.values import is_null, parse_number, parse_timestamp, to_iso_utc, to_text
from mapsync.transformer.steps import (
    STEP_CLASSES,
    ConstantStep,
    DefaultIfNullStep,
    LowercaseStep,
    PrefixStep,
    ReplaceMode,
    ReplaceStep,
    SuffixStep,
    ToDateStep,
    ToNumberStep,
    TransformationStep,
    TrimStep,
    UppercaseStep,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Any], Any]

MAX_PATTERN_LENGTH = 200


class TransformerRegistry:
    """Registry of step handlers, one per step variant."""

    def __init__(self):
        """Initialize registry."""
        self.handlers: Dict[Type[TransformationStep], Handler] = {
            ConstantStep: lambda x, step: step.value,
            UppercaseStep: lambda x, step: to_text(x).upper(),
            LowercaseStep: lambda x, step: to_text(x).lower(),
            TrimStep: lambda x, step: to_text(x).strip(),
            DefaultIfNullStep: lambda x, step: step.value if is_null(x) else x,
            PrefixStep: lambda x, step: (step.value or "") + to_text(x),
            SuffixStep: lambda x, step: to_text(x) + (step.value or ""),
            ReplaceStep: self._replace,
            ToNumberStep: lambda x, step: parse_number(x),
            ToDateStep: lambda x, step: self._to_date(x),
        }

        missing = [cls.__name__ for cls in STEP_CLASSES if cls not in self.handlers]
        if missing:
            raise TypeError(f"No transformer registered for: {', '.join(missing)}")

    def get(self, step: TransformationStep) -> Optional[Handler]:
        """Get handler for a step."""
        return self.handlers.get(type(step))

    def transform(self, value: Any, step: TransformationStep) -> Any:
        """Apply a single step. Unknown steps leave the value unchanged."""
        handler = self.get(step)
        if handler is None:
            logger.debug(f"No handler for step {step!r}, value passed through")
            return value
        return handler(value, step)

    def apply(self, value: Any, steps: Iterable[TransformationStep]) -> Any:
        """
        Run a value through a pipeline.

        Each step consumes the previous step's output, starting from the raw
        value.

        Args:
            value: Raw source value
            steps: Ordered transformation steps

        Returns:
            The final value (None when a parse step fails)
        """
        result = value
        for step in steps:
            result = self.transform(result, step)
        return result

    @staticmethod
    def describe(step: TransformationStep) -> str:
        """Short summary used in reports, e.g. ``PREFIX(EMP-)``."""
        name = step.type.upper()
        value = getattr(step, "value", None)
        return f"{name}({value})" if value else name

    @staticmethod
    def _replace(value: Any, step: ReplaceStep) -> str:
        text = to_text(value)
        if not step.value:
            return text

        if step.mode == ReplaceMode.PATTERN:
            if len(step.value) > MAX_PATTERN_LENGTH:
                logger.warning(f"Replace pattern longer than {MAX_PATTERN_LENGTH} characters ignored")
                return text
            try:
                pattern = re.compile(step.value)
            except re.error as e:
                logger.warning(f"Invalid replace pattern {step.value!r}: {e}")
                return text
            return pattern.sub(lambda m: step.replace_with, text)

        return text.replace(step.value, step.replace_with)

    @staticmethod
    def _to_date(value: Any) -> Optional[str]:
        timestamp = parse_timestamp(value)
        if timestamp is None:
            return None
        return to_iso_utc(timestamp)


default_registry = TransformerRegistry()


def apply_pipeline(value: Any, steps: Iterable[TransformationStep]) -> Any:
    """Apply a pipeline with the shared default registry."""
    return default_registry.apply(value, steps)
