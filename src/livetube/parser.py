"""Candidate parser for request query strings.

Turns the ordered (key, value) pairs of a request into an ordered list of
candidates. Unrecognised keys that follow a candidate are folded back into
its value, which recovers direct URLs whose own query string was split by
the outer parser (an unencoded ``&`` inside ``x=...``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from livetube.models.candidate import Candidate, CandidateKind

if TYPE_CHECKING:
    from collections.abc import Iterable

_RECOGNISED_KEYS: frozenset[str] = frozenset(kind.value for kind in CandidateKind)


def parse_candidates(pairs: Iterable[tuple[str, str]]) -> list[Candidate]:
    """Build candidates from query pairs, preserving first-occurrence order.

    An unrecognised key before any recognised one is dropped silently.
    """
    pending: list[tuple[CandidateKind, list[str]]] = []

    for key, value in pairs:
        if key in _RECOGNISED_KEYS:
            pending.append((CandidateKind(key), [value]))
        elif pending:
            pending[-1][1].append(f"&{key}={value}")

    return [Candidate(kind=kind, value="".join(parts)) for kind, parts in pending]
