"""Annotation model shared by every pipeline.

Nothing in ChemCite renders markup. Components return plain data plus
:class:`Annotation` values, and the annotated replacement of a record is a
sequence of :class:`Segment` objects: text runs carrying an optional
typographic :class:`Style` and an optional annotation. An external renderer
turns these into HTML, rich text or terminal colours.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Generic, Iterable, TypeVar

T = TypeVar('T')


class Classification(IntEnum):
    """Severity of an annotation, ordered so that ``max()`` gives the worst."""

    SUCCESS = 0
    WARNING = 1
    DANGER = 2


class Style(Enum):
    """Typographic role of a segment."""

    SUPERSCRIPT = 'sup'
    SUBSCRIPT = 'sub'
    ITALIC = 'em'


@dataclass(frozen=True)
class Annotation:
    """A classified, localized message attached to a substring of a record."""

    classification: Classification
    message: str
    target: str
    kind: str = ''

    @property
    def is_blocking(self) -> bool:
        """Danger annotations keep a record from being citation-ready."""
        return self.classification is Classification.DANGER


@dataclass(frozen=True)
class Segment:
    """A run of output text."""

    text: str
    style: Style | None = None
    annotation: Annotation | None = None


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful parse carrying the structured value."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed parse: the original text and the annotation explaining why."""

    text: str
    annotation: Annotation


def annotate(
    target: str,
    classification: Classification,
    message: str,
    kind: type[Exception] | str = '',
) -> Annotation:
    """Build an annotation for ``target``.

    ``kind`` may be one of the classes from :mod:`chemcite.errors`; its name is
    stored so reports can group annotations by error type.
    """
    if isinstance(kind, type):
        kind = kind.__name__
    return Annotation(classification=classification, message=message, target=target, kind=kind)


def worst_classification(annotations: Iterable[Annotation]) -> Classification:
    """Highest severity among ``annotations`` (SUCCESS when empty)."""
    return max((a.classification for a in annotations), default=Classification.SUCCESS)


def plain_text(segments: Iterable[Segment]) -> str:
    """Concatenate segment text, dropping styles and annotations."""
    return ''.join(seg.text for seg in segments)


def highlight(text: str, annotation: Annotation) -> tuple[Segment, ...]:
    """Split ``text`` so the first occurrence of the annotation target carries it.

    An empty target, or one that does not occur in ``text``, annotates the
    whole text.
    """
    target = annotation.target
    index = text.find(target) if target else -1
    if index < 0:
        return (Segment(text, annotation=annotation),)

    segments = []
    if index:
        segments.append(Segment(text[:index]))
    segments.append(Segment(target, annotation=annotation))
    rest = text[index + len(target):]
    if rest:
        segments.append(Segment(rest))
    return tuple(segments)


def highlight_segments(
    segments: Iterable[Segment],
    annotation: Annotation,
) -> tuple[Segment, ...]:
    """Apply :func:`highlight` to the first unannotated segment containing the target."""
    result: list[Segment] = []
    applied = False
    for seg in segments:
        if not applied and seg.annotation is None and annotation.target and annotation.target in seg.text:
            for piece in highlight(seg.text, annotation):
                result.append(Segment(piece.text, style=seg.style, annotation=piece.annotation))
            applied = True
        else:
            result.append(seg)
    if applied:
        return tuple(result)
    if annotation.target and any(annotation.target in seg.text for seg in result):
        # Span already carries an earlier annotation
        return tuple(result)
    return tuple(Segment(seg.text, seg.style, seg.annotation or annotation) for seg in result)


def highlight_spans(
    text: str,
    spans: Iterable[tuple[int, Annotation]],
) -> tuple[Segment, ...]:
    """Annotate ``text`` at known offsets.

    Each span pairs the start offset of an annotation target with the
    annotation. A span that overlaps an earlier one is skipped, so the first
    annotation given for a substring wins.
    """
    segments = []
    pos = 0
    for start, annotation in sorted(spans, key=lambda span: span[0]):
        if start < pos:
            continue
        end = start + len(annotation.target)
        if start > pos:
            segments.append(Segment(text[pos:start]))
        segments.append(Segment(text[start:end], annotation=annotation))
        pos = end
    if pos < len(text):
        segments.append(Segment(text[pos:]))
    return tuple(segments)


@dataclass(frozen=True)
class Citation:
    """One formatted record: the input substring and its two replacements.

    ``plain`` is the publication text; ``annotated`` carries the same text
    split into styled, annotated segments for an external renderer.
    """

    kind: str
    source: str
    plain: str
    annotated: tuple[Segment, ...]
    annotations: tuple[Annotation, ...] = ()
    calculated_mass: float | None = None
    line: int = 0

    @property
    def classification(self) -> Classification:
        return worst_classification(self.annotations)

    @property
    def is_citation_ready(self) -> bool:
        return self.classification is not Classification.DANGER

    def as_triple(self) -> tuple[str, str, tuple[Segment, ...]]:
        return self.source, self.plain, self.annotated
