"""
Console rendering of reader events.
"""

from typing import Sequence

from rich.markup import escape
from rich.table import Table

from docreader.readalong.barrier_analyzer import AccessibilityReport, Severity
from docreader.readalong.events import (
    DocumentLoaded,
    Highlight,
    PlaybackError,
    PlaybackStatus,
    PlaybackStatusChanged,
    ReportReady,
)
from docreader.readalong.sentence_splitter import Sentence
from docreader.structure import StructuralContext
from docreader.utils import logger

SEVERITY_STYLES = {
    Severity.HIGH: "red bold",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "green",
}


def print_report(report: AccessibilityReport) -> None:
    """Print an accessibility report."""
    console = logger.console
    console.print(
        f"[bold]Accessibility Score: {report.score}/100[/bold] ({report.risk_level.label})"
    )

    if not report.issues:
        console.print("[success]✓ No major accessibility barriers detected[/success]")
    else:
        table = Table(title="Accessibility Barriers Detected")
        table.add_column("Barrier", style="bold")
        table.add_column("Details")
        table.add_column("Impact", style="italic")
        table.add_column("Severity")

        for issue in report.issues:
            style = SEVERITY_STYLES[issue.severity]
            table.add_row(
                issue.type.value,
                issue.description,
                issue.impact,
                f"[{style}]{issue.severity.value.upper()}[/{style}]",
            )
        console.print(table)

    console.print(f"[bold]Recommended:[/bold] {report.recommendation}")


def print_sentences(sentences: Sequence[Sentence]) -> None:
    """Print an indexed sentence listing."""
    table = Table(show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Context")
    table.add_column("Sentence")

    for sentence in sentences:
        table.add_row(str(sentence.index), sentence.context.value, escape(sentence.text))
    logger.console.print(table)


class ConsoleRenderer:
    """Render playback events to the terminal."""

    def __init__(self, accessibility_mode: bool = True):
        self.accessibility_mode = accessibility_mode
        self.sentences: Sequence[Sentence] = ()

    def __call__(self, event) -> None:
        if isinstance(event, DocumentLoaded):
            self.sentences = event.sentences
        elif isinstance(event, ReportReady):
            print_report(event.report)
        elif isinstance(event, Highlight):
            self._highlight(event.index)
        elif isinstance(event, PlaybackStatusChanged):
            if event.status != PlaybackStatus.PLAYING:
                logger.step(f"Playback {event.status.value}")
        elif isinstance(event, PlaybackError):
            logger.error(event.message)

    def _highlight(self, index: int) -> None:
        if not 0 <= index < len(self.sentences):
            return

        sentence = self.sentences[index]
        style = "bold yellow on black" if self.accessibility_mode else "magenta"
        if sentence.context == StructuralContext.HEADING:
            style = f"{style} underline"

        logger.console.print(
            f"[step][{index + 1}/{len(self.sentences)}][/step] [{style}]{escape(sentence.text)}[/{style}]",
            highlight=False,
        )
