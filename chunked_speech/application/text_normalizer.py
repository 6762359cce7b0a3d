from __future__ import annotations

import re
import unicodedata

# Typographic glyphs the vocabulary does not cover, mapped to plain ASCII.
SUBSTITUTIONS: dict[str, str] = {
    "‘": "'",  # left single quote
    "’": "'",  # right single quote / apostrophe
    "‚": "'",
    "‛": "'",
    "′": "'",  # prime
    "“": '"',  # left double quote
    "”": '"',  # right double quote
    "„": '"',
    "‟": '"',
    "″": '"',  # double prime
    "‒": "-",  # figure dash
    "–": "-",  # en dash
    "—": "-",  # em dash
    "―": "-",  # horizontal bar
    "…": "...",  # ellipsis
}

_TRANSLATION = str.maketrans(SUBSTITUTIONS)
_WHITESPACE_RUN = re.compile(r"\s+")


def _strip_control_characters(text: str) -> str:
    out: list[str] = []
    for ch in text:
        category = unicodedata.category(ch)
        if category == "Cc":
            out.append(" ")
        elif category == "Cf":
            continue
        else:
            out.append(ch)
    return "".join(out)


def normalize_text(text: str) -> str:
    """Canonicalize raw input before any other processing.

    NFC composition, typographic substitution, then whitespace collapsing.
    The result is stable under a second call.
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFC", text)
    text = text.translate(_TRANSLATION)
    text = _strip_control_characters(text)
    # Dropping format characters can leave combinable sequences behind.
    text = unicodedata.normalize("NFC", text)
    return _WHITESPACE_RUN.sub(" ", text).strip()


class TextNormalizer:
    def normalize(self, text: str) -> str:
        return normalize_text(text)
