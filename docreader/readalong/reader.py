"""
Document Reader Module

Wires extraction, segmentation, barrier analysis and playback together
for one reading session. Each loaded document replaces the previous one
wholesale; components talk through explicit arguments and the event
channel rather than shared state.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from docreader.extract_text import InputError, is_pdf, read_document
from docreader.readalong.barrier_analyzer import AccessibilityReport, BarrierAnalyzer
from docreader.readalong.events import DocumentLoaded, EventChannel, ReportReady
from docreader.readalong.playback import PlaybackController
from docreader.readalong.sentence_splitter import Sentence, SentenceSplitter
from docreader.readalong.speech_engine import SpeechEngine
from docreader.structure import StructureFormatter
from docreader.utils.settings import ReaderSettings, SettingsRepository
from docreader.utils import logger

ACCESSIBILITY_DESCRIPTION = (
    "Accessibility Mode Active: High contrast, large text, and optimized "
    "formatting for enhanced readability."
)
NORMAL_DESCRIPTION = (
    "Normal Mode Active: Standard text formatting with accessibility features available."
)


@dataclass(frozen=True)
class Document:
    """A loaded document and its sentences."""

    raw_text: str
    sentences: Tuple[Sentence, ...]
    name: str = "document"


class DocumentReader:
    """
    One read-along session.

    Handles:
    1. Reading the document text (via the extraction collaborator)
    2. Structural conversion and sentence segmentation
    3. Barrier analysis
    4. Playback control and persisted preferences
    """

    def __init__(
        self,
        engine: SpeechEngine,
        settings_repository: SettingsRepository,
        events: Optional[EventChannel] = None,
        announcer: Optional[Callable[[str], None]] = None,
        scheduler=None,
    ):
        """
        Initialize the reader.

        Args:
            engine: Speech engine for read-aloud
            settings_repository: Where preferences are loaded from and saved to
            events: Channel the rendering side subscribes to
            announcer: Receives assistive announcements
            scheduler: Timer source for the playback controller
        """
        self.events = events or EventChannel()
        self.announcer = announcer or (lambda message: None)
        self.settings_repository = settings_repository
        self.settings: ReaderSettings = settings_repository.load()

        self.formatter = StructureFormatter()
        self.splitter = SentenceSplitter()
        self.analyzer = BarrierAnalyzer()
        self.controller = PlaybackController(
            engine,
            events=self.events,
            announcer=self.announcer,
            scheduler=scheduler,
            rate=self.settings.speed,
        )

        self.document: Optional[Document] = None
        self.report: Optional[AccessibilityReport] = None

        mode = "accessibility" if self.settings.accessibility_mode else "normal"
        self.announcer(
            f"Smart Document Reader loaded in {mode} mode. Upload a document to begin."
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def load_file(self, path: Path) -> Document:
        """
        Load a document from disk.

        Raises:
            InputError: the file cannot be read or holds no text
        """
        path = Path(path)
        try:
            text = read_document(path)
            return self.load_text(text, name=path.name, markup=not is_pdf(path))
        except InputError as e:
            self._report_input_error(e)
            raise

    def load_text(self, text: str, name: str = "document", markup: bool = True) -> Document:
        """
        Load a document from text.

        Args:
            text: Raw document text
            name: Display name used in announcements
            markup: Interpret heading and emphasis markers

        Returns:
            The new Document

        Raises:
            InputError: text is empty; the current document is left untouched
        """
        if not text or not text.strip():
            raise InputError(f"{name} contains no readable text")

        units = self.formatter.parse(text, markup=markup)
        sentences = self.splitter.split(units)
        report = self.analyzer.analyze(text, sentences)

        self.document = Document(raw_text=text, sentences=sentences, name=name)
        self.report = report
        self.controller.load(sentences)

        logger.debug(f"Loaded {name}: {len(sentences)} sentences, score {report.score}")
        self.events.emit(DocumentLoaded(sentences=sentences))
        self.events.emit(ReportReady(report=report))
        self.announcer(f"Document loaded: {name}. {len(sentences)} sentences ready for reading.")

        return self.document

    def reanalyze(self) -> Optional[AccessibilityReport]:
        """Re-run barrier analysis on the current document."""
        if self.document is None:
            return None

        self.report = self.analyzer.analyze(self.document.raw_text, self.document.sentences)
        self.events.emit(ReportReady(report=self.report))
        return self.report

    def _report_input_error(self, error: InputError) -> None:
        logger.error(str(error))
        self.announcer(f"Error: {error}")

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def start(self) -> bool:
        return self.controller.start()

    def pause(self) -> None:
        self.controller.pause()

    def toggle_playback(self) -> None:
        self.controller.toggle()

    def seek(self, delta: int) -> bool:
        return self.controller.seek(delta)

    def next_sentence(self) -> bool:
        return self.seek(1)

    def previous_sentence(self) -> bool:
        return self.seek(-1)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def set_speed(self, speed: float) -> None:
        """Change the reading speed and persist it."""
        self.controller.set_rate(speed)
        self.settings.speed = self.controller.rate
        self.settings_repository.save(self.settings)

    def toggle_accessibility_mode(self) -> bool:
        """Flip accessibility mode, persist it and announce the change."""
        self.settings.accessibility_mode = not self.settings.accessibility_mode
        self.settings_repository.save(self.settings)

        mode = "Accessibility" if self.settings.accessibility_mode else "Normal"
        self.announcer(f"{mode} mode activated")
        return self.settings.accessibility_mode

    @property
    def mode_description(self) -> str:
        if self.settings.accessibility_mode:
            return ACCESSIBILITY_DESCRIPTION
        return NORMAL_DESCRIPTION
