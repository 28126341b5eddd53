"""
Decides whether a Netflix title and a Trakt title denote the same work.

Sometimes the titles don't match because of unicode characters.
For example,
    On Netflix: "Arrested Development: Beef Consomme"
    On Trakt:   "Arrested Development: Beef Consommé"

Netflix and Trakt may also use different cases for the same title.
For example,
    On Netflix: "Arrested Development: Justice is Blind"
    On Trakt:   "Arrested Development: Justice Is Blind"

On top of the regular comparison, titles are normalized step by step and
compared again after each step.
"""

import unicodedata
from typing import List, Optional

ELLIPSIS = "..."

# Characters that are never part of the Trakt title
# Netflix title: "Arrested Development: Ready, Aim, Marry Me!"
# Trakt title:   "Arrested Development: Ready, Aim, Marry Me"
CHARS_TO_REMOVE: List[str] = ["!"]


def isPartialTitle(netflix_title: str, trakt_title: str) -> bool:
    """Netflix titles sometimes end with "..." to indicate a longer title."""
    return netflix_title.endswith(ELLIPSIS) and not trakt_title.endswith(ELLIPSIS)


def areEqual(netflix_title: str, trakt_title: str, partial: bool) -> bool:
    if partial:
        # Too short to be safely truncated
        if len(netflix_title) < len(ELLIPSIS):
            return False
        prefix = netflix_title[: -len(ELLIPSIS)]
        return trakt_title.casefold().startswith(prefix.casefold())
    return netflix_title.casefold() == trakt_title.casefold()


def removeDiacritics(text: str) -> str:
    """Decompose, drop the non-spacing marks (accents...), and recompose."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def _starts_word(previous: Optional[str]) -> bool:
    return previous is None or previous.isspace() or unicodedata.category(previous).startswith("P")


def removeLeadingI(text: str) -> str:
    """
    Removes the lowercase "i" starting a word, keeping whatever came before
    it (start of string, space, or punctuation).
    """
    kept = []
    previous = None
    for char in text:
        if not (char == "i" and _starts_word(previous)):
            kept.append(char)
        previous = char
    return "".join(kept)


def stringMatches(netflix_title: str, trakt_title: str, partial: Optional[bool] = None) -> bool:
    """
    Returns True if the Netflix title matches the Trakt title.

    :param netflix_title: The title coming from Netflix
    :param trakt_title: The candidate title returned by a Trakt search
    :param partial: Whether the Netflix title is truncated. None detects it
        from a trailing "..." on the Netflix side only.
    """
    if partial is None:
        partial = isPartialTitle(netflix_title, trakt_title)

    if areEqual(netflix_title, trakt_title, partial):
        return True

    netflix_title = removeDiacritics(netflix_title)
    trakt_title = removeDiacritics(trakt_title)
    if areEqual(netflix_title, trakt_title, partial):
        return True

    # If the title contains "!", then we need to take Spanish into account
    # Ex.
    #   Netflix title: "Arrested Development iAmigos!"
    #   Trakt title:   "Arrested Development Amigos"
    #
    # Netflix used an "i" and not a "¡", which forces us to remove all the
    # "i"s at the beginning of words. We DO NOT remove them on the Trakt
    # side, otherwise "iiPhone!" and "iPhone" would become "iPhone" and "Phone".
    if "!" in netflix_title or "!" in trakt_title:
        netflix_title = removeLeadingI(netflix_title)
        netflix_title = netflix_title.replace("¡", "").replace("!", "")
        trakt_title = trakt_title.replace("¡", "").replace("!", "")

    for char in CHARS_TO_REMOVE:
        netflix_title = netflix_title.replace(char, "")
        trakt_title = trakt_title.replace(char, "")

    # Sometimes Netflix uses spaces instead of dashes
    #   Netflix title: "Arrested Development: Forget Me Now"
    #   Trakt title:   "Arrested Development: Forget-Me-Now"
    netflix_title = netflix_title.replace(" ", "-")
    trakt_title = trakt_title.replace(" ", "-")

    return areEqual(netflix_title, trakt_title, partial)
