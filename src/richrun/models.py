from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

AnnotationValue = Union[bool, str]
Annotations = Dict[str, AnnotationValue]


class EditOperationType(str, Enum):
    INSERTION = "INSERTION"
    DELETION = "DELETION"
    MODIFICATION = "MODIFICATION"


class Run(BaseModel):
    """
    A contiguous span of text sharing one annotation mapping.

    Annotations only hold active styles: falsy values (False, None, "")
    are dropped on construction, so a style that is "off" and a style that
    was never set compare equal.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    annotations: Annotations = Field(default_factory=dict, validate_default=True)

    @field_validator("annotations", mode="before")
    @classmethod
    def _drop_inactive(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {key: val for key, val in value.items() if val}
        return value

    @field_validator("annotations", mode="after")
    @classmethod
    def _read_only(cls, value: Annotations) -> Mapping:
        # Runs are shared between snapshots; nobody may edit them in place
        return MappingProxyType(value)

    @field_serializer("annotations")
    def _dump_annotations(self, value: Mapping) -> Annotations:
        return dict(value)

    def with_text(self, text: str) -> "Run":
        return Run(text=text, annotations=self.annotations)

    def active_styles(self) -> list:
        return [key for key, val in self.annotations.items() if val]


class Diff(BaseModel):
    """
    Minimal edit between two text snapshots.
    `start` is an offset in the previous text.
    """

    model_config = ConfigDict(frozen=True)

    start: int
    removed: str = ""
    added: str = ""

    @property
    def operation(self) -> Optional[EditOperationType]:
        if self.removed and self.added:
            return EditOperationType.MODIFICATION
        if self.removed:
            return EditOperationType.DELETION
        if self.added:
            return EditOperationType.INSERTION
        return None

    @property
    def is_noop(self) -> bool:
        return not self.removed and not self.added


class PendingStyle(BaseModel):
    # Raw delta: a False value means "switch this style off" for the next insertion.
    model_config = ConfigDict(frozen=True)

    start: int = 0
    end: int = 0
    annotations: Dict[str, Optional[AnnotationValue]] = {}

    @property
    def is_armed(self) -> bool:
        return any(self.annotations.values())


class Selection(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int = 0
    end: int = 0

    @property
    def is_collapsed(self) -> bool:
        return self.start == self.end

    def ordered(self) -> Tuple[int, int]:
        return (self.start, self.end) if self.start <= self.end else (self.end, self.start)


class EditorState(BaseModel):
    """
    Immutable snapshot of the document.

    The plain text is always derived from the runs; there is no separate
    "previous text" field to fall out of sync.
    """

    model_config = ConfigDict(frozen=True)

    runs: Tuple[Run, ...] = (Run(text=""),)
    pending: Optional[PendingStyle] = None

    @field_validator("runs", mode="after")
    @classmethod
    def _never_empty(cls, runs: Tuple[Run, ...]) -> Tuple[Run, ...]:
        if not runs:
            return (Run(text=""),)
        return runs

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)
