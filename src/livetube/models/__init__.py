from __future__ import annotations

from livetube.models.candidate import Candidate, CandidateKind, ClearOutcome, ResolvedStream

__all__ = [
    "Candidate",
    "CandidateKind",
    "ClearOutcome",
    "ResolvedStream",
]
