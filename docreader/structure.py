"""
Document Structure Module

Converts extracted text into structural units (headings and paragraphs)
that the sentence splitter treats as hard boundaries.
Inline emphasis markers are neutralized to plain text.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List


class StructuralContext(str, Enum):
    """Kind of block a sentence was read from."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    PLAIN = "plain"


@dataclass(frozen=True)
class StructuralUnit:
    """A heading or paragraph block."""

    context: StructuralContext
    text: str
    level: int = 0  # Heading depth 1-6, 0 for other blocks


class StructureFormatter:
    """
    Split text into structural units.

    Handles:
    - Blank-line separated paragraphs
    - Markdown headings (# to ######), even without surrounding blank lines
    - Bold (**text**) and italic (*text*) emphasis
    """

    HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
    BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*")
    ITALIC_PATTERN = re.compile(r"\*(.+?)\*")

    def parse(self, text: str, markup: bool = True) -> List[StructuralUnit]:
        """
        Parse text into structural units.

        Args:
            text: Raw document text
            markup: Interpret heading and emphasis markers. Disable for
                sources such as PDF pages where they are literal text.

        Returns:
            List of StructuralUnit in reading order
        """
        units = []

        for block in self._split_blocks(text):
            if markup:
                units.extend(self._parse_block(block))
            else:
                units.append(StructuralUnit(
                    context=StructuralContext.PLAIN,
                    text=self._normalize_whitespace(block),
                ))

        return [u for u in units if u.text]

    def _split_blocks(self, text: str) -> List[str]:
        """Split text on blank lines."""
        blocks = re.split(r"\n\s*\n", text)
        return [b.strip() for b in blocks if b.strip()]

    def _parse_block(self, block: str) -> List[StructuralUnit]:
        """Separate heading lines from paragraph lines within one block."""
        units = []
        paragraph_lines: List[str] = []

        def flush() -> None:
            if paragraph_lines:
                units.append(StructuralUnit(
                    context=StructuralContext.PARAGRAPH,
                    text=self._normalize_whitespace(
                        self._strip_emphasis(" ".join(paragraph_lines))
                    ),
                ))
                paragraph_lines.clear()

        for line in block.split("\n"):
            match = self.HEADING_PATTERN.match(line.strip())
            if match:
                flush()
                units.append(StructuralUnit(
                    context=StructuralContext.HEADING,
                    text=self._normalize_whitespace(self._strip_emphasis(match.group(2))),
                    level=len(match.group(1)),
                ))
            elif line.strip():
                paragraph_lines.append(line.strip())

        flush()
        return units

    def _strip_emphasis(self, text: str) -> str:
        """Replace emphasis markers with their inner text."""
        text = self.BOLD_PATTERN.sub(r"\1", text)
        text = self.ITALIC_PATTERN.sub(r"\1", text)
        return text

    def _normalize_whitespace(self, text: str) -> str:
        return re.sub(r"\s+", " ", text).strip()


def parse_structure(text: str, markup: bool = True) -> List[StructuralUnit]:
    """Convenience function to parse text into structural units."""
    return StructureFormatter().parse(text, markup=markup)
