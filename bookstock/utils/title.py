# bookstock/utils/title.py
import re

# Colon, hyphen and every bracket variant mark the start of a subtitle
SUBTITLE_MARKERS = re.compile(r'[:\-()\[\]{}]')
MAX_SEARCH_WORDS = 3


def create_search_title(title: str, max_words: int = MAX_SEARCH_WORDS) -> str:
    """Derive a short library search key from a full book title.

    The title is cut at the first subtitle marker, then limited to its
    first ``max_words`` words.

    Args:
        title: The title as entered or returned by the catalog
        max_words: Maximum number of words kept

    Returns:
        The search key, possibly empty
    """
    if not isinstance(title, str) or not title:
        return ''

    core_title = title
    match = SUBTITLE_MARKERS.search(title)
    if match:
        core_title = title[:match.start()]

    words = core_title.split()
    return ' '.join(words[:max_words])


# Each e-library gets its own entry point so that per-source rules can diverge later.

def edu_ebook_title(title: str) -> str:
    return create_search_title(title)


def gyeonggi_ebook_title(title: str) -> str:
    return create_search_title(title)


def sirip_ebook_title(title: str) -> str:
    return create_search_title(title)


def search_keyword(title: str, custom_search_title: str | None = None) -> str:
    """Keyword to use against a library, preferring the user's own override"""
    return custom_search_title or create_search_title(title)
