"""
Sentence Splitter Module

Splits structural units into an ordered, indexed sentence stream for
sentence-level reading and highlighting.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

from docreader.structure import StructuralContext, StructuralUnit, StructureFormatter
from docreader.utils import logger


@dataclass(frozen=True)
class Sentence:
    """Represents a single sentence with its position in the document."""

    index: int  # Reading-order position, contiguous from 0
    text: str  # Trimmed sentence text
    context: StructuralContext  # Heading, paragraph or plain block
    unit: int = 0  # Which structural unit this belongs to


class SentenceSplitter:
    """
    Sentence splitter for read-aloud playback.

    A boundary follows every run of terminal punctuation (. ! ?) that is
    followed by whitespace or the end of the unit, so "..." and "?!"
    produce a single boundary. Sentences never cross structural units.
    """

    BOUNDARY_PATTERN = re.compile(r"[.!?]+(?=\s|$)")

    def split(self, units: Iterable[StructuralUnit]) -> Tuple[Sentence, ...]:
        """
        Split structural units into sentences.

        Args:
            units: Structural units in reading order

        Returns:
            Tuple of Sentence objects indexed from 0
        """
        sentences = []
        degenerate = 0

        for unit_id, unit in enumerate(units):
            if not self.BOUNDARY_PATTERN.search(unit.text):
                degenerate += 1

            for text in self._split_unit(unit.text):
                sentences.append(Sentence(
                    index=len(sentences),
                    text=text,
                    context=unit.context,
                    unit=unit_id,
                ))

        if degenerate:
            logger.debug(f"{degenerate} unit(s) without terminal punctuation kept whole")

        return tuple(sentences)

    def _split_unit(self, text: str) -> Iterator[str]:
        """Yield the trimmed, non-empty sentences of a single unit."""
        text = re.sub(r"\s+", " ", text)
        start = 0

        for match in self.BOUNDARY_PATTERN.finditer(text):
            part = text[start:match.end()].strip()
            if part:
                yield part
            start = match.end()

        # Trailing text without terminal punctuation
        rest = text[start:].strip()
        if rest:
            yield rest


def split_into_sentences(text: str, markup: bool = True) -> Tuple[Sentence, ...]:
    """
    Convenience function to split raw text into sentences.

    Args:
        text: Text to split
        markup: Interpret headings and emphasis (see StructureFormatter)

    Returns:
        Tuple of Sentence objects
    """
    units = StructureFormatter().parse(text, markup=markup)
    return SentenceSplitter().split(units)
