"""
Style pattern registry.

A Pattern ties a style name (the annotation key stored on runs) to its
markup delimiters and to a render variant. Tables are built once, validated
up front, and never mutated afterwards.
"""
import re
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from richrun.models import Run

logger = structlog.get_logger(__name__)


class RenderVariant(str, Enum):
    """Closed set of presentations a renderer has to know about."""

    NONE = "none"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    CODE = "code"
    HIGHLIGHT = "highlight"
    HEADING = "heading"
    SUB_HEADING = "sub_heading"
    SUB_SUB_HEADING = "sub_sub_heading"


class PatternTableError(ValueError):
    pass


class Pattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    style: str = Field(min_length=1)
    opening: Optional[str] = None
    closing: Optional[str] = None
    # Group 1 is the styled content; the rest of the match is delimiter.
    matcher: Optional[re.Pattern] = None
    render: RenderVariant = RenderVariant.NONE

    @field_validator("opening", "closing", mode="before")
    @classmethod
    def _empty_literal_is_unset(cls, value):
        if value == "":
            return None
        return value

    @model_validator(mode="after")
    def _check_literals(self) -> "Pattern":
        if self.closing is not None and self.opening is None:
            raise ValueError(f"Pattern '{self.style}': closing literal set without an opening literal")
        if self.matcher is not None and self.matcher.groups < 1:
            raise ValueError(f"Pattern '{self.style}': matcher needs a capturing group for the content")
        return self

    @property
    def is_delimited(self) -> bool:
        """Both literals are known, so the pattern can be parsed and serialized."""
        return self.opening is not None and self.closing is not None

    def wrap(self, text: str) -> str:
        return f"{self.opening}{text}{self.closing}"


DEFAULT_PATTERNS: Tuple[Pattern, ...] = (
    Pattern(style="bold", opening="*", closing="*", render=RenderVariant.BOLD),
    Pattern(style="italic", opening="_", closing="_", render=RenderVariant.ITALIC),
    Pattern(style="strikethrough", opening="~", closing="~", render=RenderVariant.STRIKETHROUGH),
    Pattern(style="code", opening="`", closing="`", render=RenderVariant.CODE),
    Pattern(style="underline", opening="__", closing="__", render=RenderVariant.UNDERLINE),
    # Line-start markers: registered for rendering, not parsed or serialized yet
    Pattern(style="heading", opening="#", render=RenderVariant.HEADING),
    Pattern(style="sub_heading", opening="##", render=RenderVariant.SUB_HEADING),
    Pattern(style="sub_sub_heading", opening="###", render=RenderVariant.SUB_SUB_HEADING),
)


class RenderSpan(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    variants: Tuple[RenderVariant, ...] = ()


class PatternTable:
    """
    Ordered, immutable registry of Patterns.
    Order matters: it is the parse order and the serializer's nesting order.
    """

    def __init__(self, patterns: Iterable[Union[Pattern, Mapping]]):
        validated: List[Pattern] = []
        seen: Dict[str, Pattern] = {}

        for item in patterns:
            pattern = item if isinstance(item, Pattern) else Pattern.model_validate(item)
            if pattern.style in seen:
                raise PatternTableError(f"Duplicate style '{pattern.style}' in pattern table")
            seen[pattern.style] = pattern
            validated.append(pattern)

        self._patterns: Tuple[Pattern, ...] = tuple(validated)
        self._by_style = seen

        unsupported = [p.style for p in self._patterns if not p.is_delimited and p.matcher is None]
        if unsupported:
            logger.debug(f"Patterns without a closing literal are not parsed: {unsupported}")

    @classmethod
    def default(cls) -> "PatternTable":
        return cls(DEFAULT_PATTERNS)

    def with_patterns(self, *extra: Union[Pattern, Mapping]) -> "PatternTable":
        return PatternTable([*self._patterns, *extra])

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, style: object) -> bool:
        return style in self._by_style

    def __repr__(self) -> str:
        return f"PatternTable({[p.style for p in self._patterns]})"

    def get(self, style: str) -> Optional[Pattern]:
        return self._by_style.get(style)

    @property
    def styles(self) -> List[str]:
        return [p.style for p in self._patterns]

    @property
    def literals(self) -> List[str]:
        found: List[str] = []
        for p in self._patterns:
            for literal in (p.opening, p.closing):
                if literal and literal not in found:
                    found.append(literal)
        return found

    def render_variants(self, annotations: Mapping) -> List[RenderVariant]:
        return [p.render for p in self._patterns if annotations.get(p.style)]

    def render_plan(self, runs: Iterable[Run]) -> List[RenderSpan]:
        """
        Flattens runs into what a renderer needs: text plus the variants to
        nest it in, outermost last (table order).
        """
        return [
            RenderSpan(text=run.text, variants=tuple(self.render_variants(run.annotations)))
            for run in runs
            if run.text
        ]
