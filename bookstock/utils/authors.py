# bookstock/utils/authors.py
import re
from typing import List

_PARENTHETICAL = re.compile(r'\s*\([^)]*\)')


def parse_authors(author_string: str) -> List[str]:
    """Split a comma separated author string into individual names"""
    if not author_string or not isinstance(author_string, str):
        return []
    return [author.strip() for author in author_string.split(',') if author.strip()]


def clean_author_name(author_name: str) -> str:
    """Remove role annotations such as "(지은이)" or "(옮긴이)" from a name"""
    if not author_name or not isinstance(author_name, str):
        return ''
    return _PARENTHETICAL.sub('', author_name).strip()


def parse_and_clean_authors(author_string: str) -> List[str]:
    return [clean_author_name(author) for author in parse_authors(author_string)]
