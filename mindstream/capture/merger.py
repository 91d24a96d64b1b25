"""Combine interim and final speech fragments into one text buffer.

Final fragments are appended permanently; interim fragments only ever
replace the live text. Nothing is reordered.
"""

from __future__ import annotations


def append_final(accumulated: str, text: str) -> str:
    """Space-join a final fragment onto the accumulated text."""
    text = text.strip()
    if not text:
        return accumulated
    if not accumulated:
        return text
    return f"{accumulated} {text}"


def combine(accumulated: str, interim: str) -> str:
    """Text to hand back on stop: accumulated finals plus any live interim."""
    return append_final(accumulated, interim).strip()


class TranscriptMerger:
    """Holds the accumulated final text and the current live interim text."""

    def __init__(self) -> None:
        self.final_text = ""
        self.interim_text = ""

    def reset(self) -> None:
        self.final_text = ""
        self.interim_text = ""

    def add(self, text: str, is_final: bool) -> None:
        if is_final:
            self.final_text = append_final(self.final_text, text)
            self.interim_text = ""
        else:
            self.interim_text = text

    def combined(self) -> str:
        return combine(self.final_text, self.interim_text)
