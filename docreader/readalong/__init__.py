"""
Read-Along Module

Provides synchronized read-aloud playback with sentence-level highlighting
and accessibility barrier analysis.
"""

from docreader.readalong.sentence_splitter import Sentence, SentenceSplitter, split_into_sentences
from docreader.readalong.barrier_analyzer import AccessibilityReport, BarrierAnalyzer
from docreader.readalong.voice_selector import VoiceCandidate, select_voice
from docreader.readalong.playback import PlaybackController, PlaybackState
from docreader.readalong.reader import Document, DocumentReader

__all__ = [
    "Sentence",
    "SentenceSplitter",
    "split_into_sentences",
    "AccessibilityReport",
    "BarrierAnalyzer",
    "VoiceCandidate",
    "select_voice",
    "PlaybackController",
    "PlaybackState",
    "Document",
    "DocumentReader",
]
