# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Public API for turning discovered objects into registrable candidates.
"""

from .candidates import (
    Candidate,
    CandidateKind,
    NameFor,
    classify,
    from_mapping,
    normalize_candidate,
    normalize_candidates,
)

__all__ = [
    "Candidate",
    "CandidateKind",
    "NameFor",
    "classify",
    "from_mapping",
    "normalize_candidate",
    "normalize_candidates",
]
