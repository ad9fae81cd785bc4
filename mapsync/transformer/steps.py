"""
Transformation step variants.

Each step kind is its own frozen dataclass carrying only the fields it needs.
The ``type`` class attribute is the tag used in the registry wire format.
"""
import uuid
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Type

from mapsync.errors import ConfigurationError


class ReplaceMode(str, Enum):
    """How a replace step interprets its search value."""

    LITERAL = "literal"
    # Regular expression compiled from user input. Nested quantifiers such as
    # ``(a+)+$`` can backtrack catastrophically, so patterns are length-capped.
    PATTERN = "pattern"


# Python field name -> wire key
_WIRE_KEYS = {"replace_with": "replaceWith"}


@dataclass(frozen=True)
class TransformationStep:
    """Base class for one pipeline step."""

    id: str

    type: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the registry wire shape."""
        data: Dict[str, Any] = {"id": self.id, "type": self.type}
        for f in fields(self):
            if f.name == "id":
                continue
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            data[_WIRE_KEYS.get(f.name, f.name)] = value
        return data


@dataclass(frozen=True)
class ConstantStep(TransformationStep):
    value: Optional[str] = None

    type: ClassVar[str] = "constant"


@dataclass(frozen=True)
class UppercaseStep(TransformationStep):
    type: ClassVar[str] = "uppercase"


@dataclass(frozen=True)
class LowercaseStep(TransformationStep):
    type: ClassVar[str] = "lowercase"


@dataclass(frozen=True)
class TrimStep(TransformationStep):
    type: ClassVar[str] = "trim"


@dataclass(frozen=True)
class DefaultIfNullStep(TransformationStep):
    value: Optional[str] = None

    type: ClassVar[str] = "default_if_null"


@dataclass(frozen=True)
class PrefixStep(TransformationStep):
    value: str = ""

    type: ClassVar[str] = "prefix"


@dataclass(frozen=True)
class SuffixStep(TransformationStep):
    value: str = ""

    type: ClassVar[str] = "suffix"


@dataclass(frozen=True)
class ReplaceStep(TransformationStep):
    value: str = ""
    replace_with: str = ""
    mode: ReplaceMode = ReplaceMode.LITERAL

    type: ClassVar[str] = "replace"


@dataclass(frozen=True)
class ToNumberStep(TransformationStep):
    type: ClassVar[str] = "to_number"


@dataclass(frozen=True)
class ToDateStep(TransformationStep):
    type: ClassVar[str] = "to_date"


STEP_CLASSES: List[Type[TransformationStep]] = [
    ConstantStep,
    UppercaseStep,
    LowercaseStep,
    TrimStep,
    DefaultIfNullStep,
    PrefixStep,
    SuffixStep,
    ReplaceStep,
    ToNumberStep,
    ToDateStep,
]

STEP_TYPES: Dict[str, Type[TransformationStep]] = {cls.type: cls for cls in STEP_CLASSES}


def _allocate_id(existing: Iterable[TransformationStep]) -> str:
    taken = {step.id for step in existing}
    while True:
        step_id = f"step_{uuid.uuid4().hex[:8]}"
        if step_id not in taken:
            return step_id


def new_step(
    step_type: str,
    existing: Iterable[TransformationStep] = (),
    **config: Any,
) -> TransformationStep:
    """
    Create a step with an id unique within its pipeline.

    Args:
        step_type: Wire tag, e.g. "trim" or "replace"
        existing: Steps already in the pipeline
        **config: Variant fields (value, replace_with, mode)

    Returns:
        TransformationStep: The new step

    Raises:
        ConfigurationError: Unknown step type or field
    """
    cls = STEP_TYPES.get(step_type)
    if cls is None:
        raise ConfigurationError(f"Unknown transformation type: {step_type}")
    if "mode" in config and config["mode"] is not None:
        config["mode"] = parse_mode(config["mode"])
    config = {k: v for k, v in config.items() if v is not None}
    try:
        return cls(id=_allocate_id(existing), **config)
    except TypeError as e:
        raise ConfigurationError(f"Invalid options for '{step_type}' step: {e}")


def step_from_dict(data: Dict[str, Any]) -> TransformationStep:
    """Build a step from its wire shape, ignoring keys the variant lacks."""
    step_type = data.get("type")
    cls = STEP_TYPES.get(step_type)
    if cls is None:
        raise ConfigurationError(f"Unknown transformation type: {step_type}")

    kwargs: Dict[str, Any] = {"id": str(data.get("id") or _allocate_id(()))}
    for f in fields(cls):
        if f.name == "id":
            continue
        key = _WIRE_KEYS.get(f.name, f.name)
        if key in data and data[key] is not None:
            kwargs[f.name] = data[key]

    if "mode" in kwargs:
        kwargs["mode"] = parse_mode(kwargs["mode"])
    for name in ("value", "replace_with"):
        if name in kwargs:
            kwargs[name] = str(kwargs[name])

    return cls(**kwargs)


def parse_mode(mode: Any) -> ReplaceMode:
    try:
        return ReplaceMode(mode)
    except ValueError:
        raise ConfigurationError(f"Unknown replace mode: {mode}")
