"""
Text normalization for filter labels.

Scraped labels and configured labels are compared only after normalize():
accents, case, whitespace runs and the "Desplegar" expand affordance are
ignored. NORMALIZE_JS is the in-page twin used by the action scripts.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

from scraper.filters.constants import NOISE_TOKEN

_NOISE_RE = re.compile(re.escape(NOISE_TOKEN), re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

NORMALIZE_JS = r"""(value) => (value || '')
  .normalize('NFD')
  .replace(/[\u0300-\u036f]/g, '')
  .replace(/Desplegar/gi, '')
  .replace(/\s+/g, ' ')
  .trim()
  .toLowerCase()"""

CLEAN_LABEL_JS = r"""(value) => (value || '')
  .replace(/Desplegar/gi, '')
  .replace(/\s+/g, ' ')
  .trim()"""


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_label(text: Optional[str]) -> str:
    """Display-preserving cleanup: drop the noise token, collapse whitespace."""
    return normalize_whitespace(_NOISE_RE.sub("", text or ""))


def normalize(text: Optional[str]) -> str:
    """Canonical comparable form of a label."""
    decomposed = unicodedata.normalize("NFD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return clean_label(stripped).lower()


def matches_bidirectionally(left: str, right: str) -> bool:
    """Normalized containment in either direction. Empty names never match."""
    a = normalize(left)
    b = normalize(right)
    if not a or not b:
        return False
    return a in b or b in a
