# tests/test_title.py
import pytest

from bookstock.utils.title import (
    SUBTITLE_MARKERS, create_search_title, edu_ebook_title, search_keyword
)
from bookstock.utils.authors import clean_author_name, parse_and_clean_authors, parse_authors

TITLES = [
    '아주 작은 습관의 힘 - 최고의 변화는 어떻게 만들어지는가',
    '채식주의자 (리커버 에디션)',
    '사피엔스: 유인원에서 사이보그까지, 인간 역사의 대담하고 위대한 질문',
    '[세트] 해리 포터 시리즈 전 7권',
    '코스모스 {특별판}',
    '   여러   칸   띄어쓴   아주   긴   제목   ',
    '단어',
    '',
]


def test_cuts_at_hyphen_and_keeps_three_words():
    assert create_search_title('아주 작은 습관의 힘 - 최고의 변화는 어떻게 만들어지는가') == '아주 작은 습관의'


def test_cuts_at_colon_and_brackets():
    assert create_search_title('사피엔스: 유인원에서 사이보그까지') == '사피엔스'
    assert create_search_title('채식주의자 (리커버 에디션)') == '채식주의자'
    assert create_search_title('코스모스 {특별판}') == '코스모스'
    assert create_search_title('데미안[양장]') == '데미안'


def test_marker_at_start_gives_empty_key():
    assert create_search_title('[세트] 해리 포터 시리즈') == ''


def test_collapses_whitespace():
    assert create_search_title('   여러   칸   띄어쓴   아주 ') == '여러 칸 띄어쓴'


def test_empty_and_non_string_input():
    assert create_search_title('') == ''
    assert create_search_title(None) == ''


@pytest.mark.parametrize('title', TITLES)
def test_search_title_is_bounded(title):
    result = create_search_title(title)
    assert len(result.split()) <= 3
    match = SUBTITLE_MARKERS.search(title)
    if match:
        assert result in title[:match.start()]


@pytest.mark.parametrize('title', TITLES)
def test_search_title_is_deterministic(title):
    assert create_search_title(title) == create_search_title(title)


def test_custom_search_title_wins():
    assert search_keyword('아주 작은 습관의 힘', '습관의 힘') == '습관의 힘'
    assert search_keyword('아주 작은 습관의 힘', None) == '아주 작은 습관의'
    assert edu_ebook_title('아주 작은 습관의 힘') == '아주 작은 습관의'


def test_author_parsing():
    authors = '제임스 클리어 (지은이), 이한이 (옮긴이)'
    assert parse_authors(authors) == ['제임스 클리어 (지은이)', '이한이 (옮긴이)']
    assert parse_and_clean_authors(authors) == ['제임스 클리어', '이한이']
    assert clean_author_name('한강 (지은이)') == '한강'
    assert parse_authors('') == []
    assert clean_author_name(None) == ''
