"""Fuzzy identifier matching for table names, column names and source references.

Learners name things differently from the reference solution: case,
whitespace, underscores, abbreviations and singular/plural drift all show
up. Matching is layered so that an exact match is always preferred over a
looser heuristic.

Column matching tiers (first accepted tier wins, candidates scanned in order):
    1. exact normalized equality
    2. prefix/suffix containment (shorter side >= 3 chars; suffix always
       accepted, prefix only with >= 70% overlap)
    3. token overlap score > 0.5 (best score wins)
    4. prefix/suffix containment on separator-free forms with >= 70% overlap
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from normform.schema.models import ColumnMapping

MIN_AFFIX_LENGTH = 3
PREFIX_OVERLAP_RATIO = 0.7
TOKEN_SCORE_THRESHOLD = 0.5

_WHITESPACE = re.compile(r"\s+")
_TOKEN_SEPARATORS = re.compile(r"[_\s]+")


def normalize_name(name: Any) -> str:
    """Lowercase, trim and collapse internal whitespace to one underscore."""
    if name is None:
        return ""
    return _WHITESPACE.sub("_", str(name).strip().lower())


def tokenize(name: Any) -> list[str]:
    """Split a name into its underscore/whitespace-delimited tokens."""
    return [token for token in _TOKEN_SEPARATORS.split(normalize_name(name)) if token]


def split_reference(reference: str) -> tuple[str | None, str]:
    """Split a ``table.column`` reference on its first dot.

    Returns:
        (table, column); table is None for a bare column name
    """
    if "." in reference:
        table, column = reference.split(".", 1)
        return table, column
    return None, reference


# =============================================================================
# Tables
# =============================================================================


def _tokens_related(token: str, other: str) -> bool:
    # Containment covers equality and prefixes
    return token in other or other in token


def _tokens_covered(tokens: list[str], others: list[str]) -> bool:
    return all(any(_tokens_related(token, other) for other in others) for token in tokens)


def tables_match(a: Any, b: Any) -> bool:
    """Check whether two table names denote the same table.

    Symmetric: exact match, containment, or token coverage in either
    direction (e.g. "CREW" ~ "CREW_MEMBER", "FLIGHT_DETAILS" ~ "FLIGHT").
    """
    left = normalize_name(a)
    right = normalize_name(b)
    if not left or not right:
        return False

    if left == right:
        return True

    if left in right or right in left:
        return True

    left_tokens = tokenize(left)
    right_tokens = tokenize(right)
    if not left_tokens or not right_tokens:
        return False

    return _tokens_covered(left_tokens, right_tokens) or _tokens_covered(
        right_tokens, left_tokens
    )


# =============================================================================
# Columns
# =============================================================================


def _affix_match(a: str, b: str) -> bool:
    """Tier 2: shorter name anchored at the end (or, with enough overlap, the start)."""
    short, long = sorted((a, b), key=len)
    if len(short) < MIN_AFFIX_LENGTH:
        return False
    if long.endswith(short):
        return True
    return long.startswith(short) and len(short) / len(long) >= PREFIX_OVERLAP_RATIO


def _token_score(a: str, b: str) -> float:
    """Tier 3: share of tokens matched, 0.0 unless the smaller set is fully matched."""
    a_tokens = tokenize(a)
    b_tokens = tokenize(b)
    if not a_tokens or not b_tokens:
        return 0.0

    if len(a_tokens) <= len(b_tokens):
        short, long = a_tokens, b_tokens
    else:
        short, long = b_tokens, a_tokens

    matched = sum(
        1
        for token in short
        if any(token == other or token.startswith(other) or other.startswith(token) for other in long)
    )
    if matched < len(short):
        return 0.0
    return matched / max(len(a_tokens), len(b_tokens))


def _compact_match(a: str, b: str) -> bool:
    """Tier 4: affix containment once separators are removed."""
    compact_a = a.replace("_", "")
    compact_b = b.replace("_", "")
    if not compact_a or not compact_b:
        return False
    if compact_a == compact_b:
        return True

    short, long = sorted((compact_a, compact_b), key=len)
    if len(short) < MIN_AFFIX_LENGTH:
        return False
    if not (long.startswith(short) or long.endswith(short)):
        return False
    return len(short) / len(long) >= PREFIX_OVERLAP_RATIO


def column_names_match(a: Any, b: Any) -> bool:
    """Strict column-name comparison (tiers 1 and 2 only)."""
    left = normalize_name(a)
    right = normalize_name(b)
    if not left or not right:
        return False
    return left == right or _affix_match(left, right)


def find_matching_column(
    target_name: Any, candidates: Sequence[ColumnMapping]
) -> ColumnMapping | None:
    """Find the candidate column that best matches a name.

    Each tier is evaluated across all candidates before falling back to the
    next one, so an exact match can never lose to a fuzzier candidate that
    appears earlier in the list.

    Args:
        target_name: Name to look for
        candidates: Columns to search

    Returns:
        The matching column, or None if no tier accepts any candidate
    """
    target = normalize_name(target_name)
    if not target:
        return None

    named = [(column, normalize_name(column.name)) for column in candidates]
    named = [(column, name) for column, name in named if name]

    for column, name in named:
        if name == target:
            return column

    for column, name in named:
        if _affix_match(target, name):
            return column

    best: ColumnMapping | None = None
    best_score = TOKEN_SCORE_THRESHOLD
    for column, name in named:
        score = _token_score(target, name)
        if score > best_score:
            best = column
            best_score = score
    if best is not None:
        return best

    for column, name in named:
        if _compact_match(target, name):
            return column

    return None


# =============================================================================
# Source references
# =============================================================================


def source_cols_match(a: str, b: str) -> bool:
    """Check whether two source references point at the same column.

    Qualified ``table.column`` references match when the tables match
    fuzzily and the columns match strictly. Anything else must be equal
    after normalization.
    """
    a_table, a_column = split_reference(a)
    b_table, b_column = split_reference(b)

    if a_table is not None and b_table is not None:
        return tables_match(a_table, b_table) and column_names_match(a_column, b_column)

    left = normalize_name(a)
    return bool(left) and left == normalize_name(b)
