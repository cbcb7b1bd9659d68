from __future__ import annotations
import re
import unicodedata
from functools import lru_cache
from typing import Sequence

_feat_pattern = re.compile(r"[\(\[]?\b(?:feat\.?|ft\.?|featuring)\s.*$", re.IGNORECASE)
# Remaster / mono / stereo descriptors:
# - "2011 Remaster", "(2011 Remaster)", "(Remastered 2011)", "- 2011 Remaster"
_remaster_pattern = re.compile(
    r"""
    (?:
        [\(\[\-\s]+
        (?:
            (?:19|20)\d{2}\s*remaster(?:ed)?
            | remaster(?:ed)?(?:\s*(?:19|20)\d{2})?
            | mono | stereo | mono\s*version | stereo\s*version
        )
        [\)\]]*
    )
    """,
    re.IGNORECASE | re.VERBOSE
)
# Video-site noise appended to music uploads
_video_noise_pattern = re.compile(
    r"[\(\[]\s*(?:official\s+)?(?:music\s+|lyric\s+|audio\s+)?(?:video|audio|lyrics?|visualizer|hd|hq|4k)\s*[\)\]]",
    re.IGNORECASE,
)
_punct_pattern = re.compile(r"[\s\-_.,/&+]+")

_stopwords = {"the", "a", "an", "and", "or", "of", "in", "on", "at", "to", "for", "with", "from"}


@lru_cache(maxsize=8192)
def normalize_token(s: str) -> str:
    """Reduce a title/artist/album string to sorted, comparable tokens."""
    s = s.lower().strip()
    # Unicode normalization (accents, diacritics)
    s = unicodedata.normalize("NFKD", s)
    s = "".join(c for c in s if not unicodedata.combining(c))
    s = _video_noise_pattern.sub(" ", s)
    s = _feat_pattern.sub("", s)
    s = _remaster_pattern.sub("", s)
    s = re.sub(r"[\[\](){}]", " ", s)
    s = _punct_pattern.sub(" ", s)
    s = re.sub(r"[^a-z0-9 ]+", "", s)
    tokens = [t for t in s.split() if t and t not in _stopwords]
    # Sorted so "Beatles, The" and "The Beatles" compare equal
    tokens.sort()
    return " ".join(tokens)


def normalize_artists(artists: Sequence[str]) -> str:
    return normalize_token(" ".join(artists))


__all__ = ["normalize_token", "normalize_artists"]
