"""
Species Name Helpers

Small string utilities shared by every pipeline stage:

1. Binomial extraction from full (possibly subspecies-qualified) names
2. Detection of placeholder NCBI labels ("Lactobacillus sp. X",
   "Lactobacillales bacterium Y") that carry no species information
3. Abbreviation of genus names and long epithets for report tables
4. Underscore normalisation of labels

Example Usage:
    >>> from clusternamer.names import species_from_name, abbreviate
    >>> species_from_name("Lactobacillus plantarum subsp. argentoratensis")
    'Lactobacillus plantarum'
    >>> abbreviate("Leuconostoc pseudomesenteroides",
    ...            [("Leuconostoc", "Leuc."), ("pseudomesenteroides", "pseudomesent.")])
    'Leuc. pseudomesent.'
"""

from typing import Iterable, List, Optional, Sequence, Tuple
import logging
import re

import pandas as pd

logger = logging.getLogger(__name__)

# "<word> sp." anywhere in the label, e.g. "Lactobacillus sp. ATCC 8014"
PLACEHOLDER_SP_REGEX = re.compile(r"\b\w+ sp\.")


def species_from_name(name: str) -> Optional[str]:
    """
    Return the binomial prefix (first two whitespace tokens) of a name.

    The result is used as a join key, so no other cleaning is applied.

    Examples
    --------
    >>> species_from_name("Lactobacillus casei")
    'Lactobacillus casei'
    >>> species_from_name("Lactobacillus delbrueckii subsp. lactis")
    'Lactobacillus delbrueckii'
    """
    if name is None or pd.isna(name):
        return None
    tokens = str(name).split()
    if not tokens:
        return None
    return " ".join(tokens[:2])


def is_placeholder_species(label: str) -> bool:
    """
    Check whether an NCBI species label is unidentified at species level.

    Missing labels count as placeholders.

    Examples
    --------
    >>> is_placeholder_species("Lactobacillus sp. ATCC 8014")
    True
    >>> is_placeholder_species("Lactobacillales bacterium DSM 123 ")
    True
    >>> is_placeholder_species("Lactobacillus plantarum")
    False
    """
    if label is None or pd.isna(label):
        return True
    text = str(label)
    if not text.strip():
        return True
    if PLACEHOLDER_SP_REGEX.search(text):
        return True
    return " bacterium " in f" {text} "


def order_abbreviations(
    abbreviations: Iterable[Sequence[str]],
) -> List[Tuple[str, str]]:
    """
    Sort (pattern, replacement) pairs by descending pattern length.

    The sort is stable, so pairs of equal length keep their configured order.
    """
    pairs = [(str(pattern), str(replacement)) for pattern, replacement in abbreviations]
    return sorted(pairs, key=lambda pair: len(pair[0]), reverse=True)


def abbreviate(text: str, abbreviations: Iterable[Sequence[str]]) -> str:
    """
    Apply literal string substitutions, longest pattern first.

    Parameters
    ----------
    text : str
        Species name or comma-joined list of names
    abbreviations : Iterable[Sequence[str]]
        (pattern, replacement) pairs

    Returns
    -------
    str
        Abbreviated text; missing values are returned unchanged

    Notes
    -----
    Applying "pseudomesenteroides" before "mesenteroides" keeps the shorter
    pattern from rewriting the middle of the longer epithet.
    """
    if text is None or pd.isna(text):
        return text
    result = str(text)
    for pattern, replacement in order_abbreviations(abbreviations):
        if pattern:
            result = result.replace(pattern, replacement)
    return result


def normalize_underscores(text: str) -> str:
    """Replace underscores with spaces (GTDB-style labels use underscores)."""
    if text is None or pd.isna(text):
        return text
    return str(text).replace("_", " ")


def join_unique(values: Iterable[str], sep: str = ", ") -> Optional[str]:
    """
    Join distinct non-missing values in sorted order.

    Returns None when nothing is left, so empty groups stay null in tables.
    """
    unique = sorted({str(v) for v in values if v is not None and not pd.isna(v)})
    if not unique:
        return None
    return sep.join(unique)
