# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Public exports for dependency ordering.
"""

from .sort import SortNode, dependency_names, dependency_refs, make_lookup, topological_sort

__all__ = [
    "SortNode",
    "dependency_names",
    "dependency_refs",
    "make_lookup",
    "topological_sort",
]
