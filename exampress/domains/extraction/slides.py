"""
Slide Tree - Presentation content as tagged variants, and its flattening.

A presentation is read into a small tree of node types. Flattening walks
the tree in document order, skipping speaker notes, and joins every text
contribution with newlines.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from pptx.enum.shapes import PP_PLACEHOLDER
from pptx.shapes.group import GroupShape

if TYPE_CHECKING:
    from pptx.presentation import Presentation
    from pptx.shapes.base import BaseShape

__all__ = [
    "TextLeaf",
    "NodeSequence",
    "SlideNode",
    "NoteNode",
    "ParagraphNode",
    "GenericContainer",
    "SlideTree",
    "build_slide_tree",
    "flatten_slide_tree",
]

_TITLE_PLACEHOLDERS = (PP_PLACEHOLDER.TITLE, PP_PLACEHOLDER.CENTER_TITLE)


@dataclass(frozen=True)
class TextLeaf:
    """Bare text, e.g. a table cell."""

    text: str


@dataclass(frozen=True)
class NodeSequence:
    """Ordered run of nodes."""

    items: tuple[SlideTree, ...]


@dataclass(frozen=True)
class SlideNode:
    """One slide."""

    children: tuple[SlideTree, ...]
    index: int = 0


@dataclass(frozen=True)
class NoteNode:
    """Speaker notes. Never contributes text."""

    children: tuple[SlideTree, ...]


@dataclass(frozen=True)
class ParagraphNode:
    """A paragraph of a text frame; titles are flagged as headings."""

    text: str
    heading: bool = False


@dataclass(frozen=True)
class GenericContainer:
    """Any other shape: optional own text followed by children."""

    children: tuple[SlideTree, ...] = ()
    text: str | None = None


SlideTree = Union[TextLeaf, NodeSequence, SlideNode, NoteNode, ParagraphNode, GenericContainer]


def flatten_slide_tree(tree: SlideTree) -> str:
    """
    Flatten a slide tree to plain text.

    Args:
        tree: Root node

    Returns:
        Text contributions in document order joined with newlines
    """
    return "\n".join(_contributions(tree))


def _contributions(node: SlideTree) -> Iterator[str]:
    match node:
        case NoteNode():
            return
        case TextLeaf(text=text) | ParagraphNode(text=text):
            if text.strip():
                yield text
        case NodeSequence(items=children) | SlideNode(children=children):
            for child in children:
                yield from _contributions(child)
        case GenericContainer(text=text, children=children):
            if text and text.strip():
                yield text
            for child in children:
                yield from _contributions(child)
        case _:
            raise TypeError(f"Unknown slide tree node: {type(node).__name__}")


def build_slide_tree(presentation: Presentation) -> NodeSequence:
    """
    Read a python-pptx presentation into a slide tree.

    Args:
        presentation: Opened presentation

    Returns:
        Sequence of slide nodes; each slide's notes are attached as a NoteNode
    """
    slides = []
    for index, slide in enumerate(presentation.slides, start=1):
        children = [_shape_node(shape) for shape in slide.shapes]

        if slide.has_notes_slide:
            notes_frame = slide.notes_slide.notes_text_frame
            if notes_frame is not None:
                children.append(
                    NoteNode(
                        children=tuple(ParagraphNode(p.text) for p in notes_frame.paragraphs)
                    )
                )

        slides.append(SlideNode(children=tuple(children), index=index))

    return NodeSequence(items=tuple(slides))


def _shape_node(shape: BaseShape) -> SlideTree:
    if isinstance(shape, GroupShape):
        return GenericContainer(children=tuple(_shape_node(s) for s in shape.shapes))

    if shape.has_table:
        # spanned positions are separate, empty cells and contribute nothing
        cells = [TextLeaf(cell.text) for row in shape.table.rows for cell in row.cells]
        return GenericContainer(children=tuple(cells))

    if shape.has_text_frame:
        heading = (
            shape.is_placeholder and shape.placeholder_format.type in _TITLE_PLACEHOLDERS
        )
        return GenericContainer(
            children=tuple(
                ParagraphNode(p.text, heading=heading) for p in shape.text_frame.paragraphs
            )
        )

    return GenericContainer()
