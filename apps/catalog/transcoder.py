"""
transcoder.py — Container conversion collaborator.

The catalog only decides *which* files need converting.  The conversion
itself belongs to a Transcoder implementation; NoopTranscoder is the
placeholder used until a real worker is wired in.
"""

import logging
from abc import ABC, abstractmethod

from models import ConversionCandidate

log = logging.getLogger("catalog")


class TranscodeError(Exception):
    """Raised by a Transcoder when a single file could not be converted."""


class Transcoder(ABC):
    @abstractmethod
    def convert(self, candidate: ConversionCandidate) -> None:
        """Convert one file to its target format, raising TranscodeError on failure."""


class NoopTranscoder(Transcoder):
    """Accepts every file without touching it."""

    def convert(self, candidate: ConversionCandidate) -> None:
        log.warning(f"  Transcoding not implemented, skipping: {candidate.file_path} "
                    f"({candidate.original_format} → {candidate.target_format})")
