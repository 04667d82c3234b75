from __future__ import annotations

from enum import Enum, StrEnum

from pydantic import BaseModel, ConfigDict


class CandidateKind(StrEnum):
    """Recognised query keys. The value is the key as it appears in the URL."""

    BY_ID = "v"
    BY_HANDLE = "c"
    BY_DIRECT_URL = "x"


class Candidate(BaseModel):
    """One caller-supplied reference in the ordered fallback chain."""

    model_config = ConfigDict(frozen=True)

    kind: CandidateKind
    value: str


# A manifest URL, or None when the candidate contributed nothing.
ResolvedStream = str | None


class ClearOutcome(Enum):
    CLEARED = "cleared"
    NOTHING_TO_CLEAR = "nothing_to_clear"
