"""
Voice selection for read-aloud playback.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

PREFERRED_KEYWORDS = ("Natural", "Enhanced", "Premium", "Neural")


@dataclass(frozen=True)
class VoiceCandidate:
    """A synthesis voice reported by the speech engine."""

    name: str
    lang: str
    is_local: bool = True
    voice_id: str = ""  # Engine-specific handle


def _tier(voice: VoiceCandidate) -> int:
    if any(keyword in voice.name for keyword in PREFERRED_KEYWORDS):
        return 0
    if voice.lang.lower().startswith("en") and voice.is_local:
        return 1
    if voice.lang.lower().startswith("en"):
        return 2
    return 3


def rank_voices(candidates: Sequence[VoiceCandidate]) -> List[VoiceCandidate]:
    """Order voices best-first; ties keep their input order."""
    return sorted(candidates, key=_tier)


def select_voice(candidates: Sequence[VoiceCandidate]) -> Optional[VoiceCandidate]:
    """Pick the best voice, or None when there are no candidates."""
    ranked = rank_voices(candidates)
    return ranked[0] if ranked else None
