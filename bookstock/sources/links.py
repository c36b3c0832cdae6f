# bookstock/sources/links.py
from enum import Enum
from typing import Optional
from urllib.parse import quote, urlencode

from ..models import PaperAvailability
from ..utils.title import search_keyword


class LibraryShortcut(str, Enum):
    TOECHON = "퇴촌"
    OTHER = "기타"
    EDU = "e교육"
    SIRIP_SUBSCRIPTION = "e시립구독"
    SIRIP_OWNED = "e시립소장"
    GYEONGGI = "e경기"


_SEARCH_URLS = {
    LibraryShortcut.TOECHON: "https://lib.gjcity.go.kr/tc/lay1/program/S23T3001C3002/jnet/resourcessearch/resultList.do?type=&searchType=SIMPLE&searchKey=ALL&searchLibraryArr=MN&searchKeyword={keyword}",
    LibraryShortcut.OTHER: "https://lib.gjcity.go.kr/lay1/program/S1T446C461/jnet/resourcessearch/resultList.do?searchType=SIMPLE&searchKey=ALL&searchLibrary=ALL&searchKeyword={keyword}",
    LibraryShortcut.EDU: "https://lib.goe.go.kr/elib/module/elib/search/index.do?menu_idx=94&search_text={keyword}&sortField=book_pubdt&sortType=desc&rowCount=20",
    LibraryShortcut.SIRIP_SUBSCRIPTION: "https://gjcitylib.dkyobobook.co.kr/search/searchList.ink?schTxt={keyword}",
    LibraryShortcut.SIRIP_OWNED: "https://lib.gjcity.go.kr:444/elibrary-front/search/searchList.ink?schTxt={keyword}",
    LibraryShortcut.GYEONGGI: "https://ebook.library.kr/search?OnlyStartWith=false&searchType=all&listType=list&keyword={keyword}",
}

PAPER_DETAIL_URL = "https://lib.gjcity.go.kr/tc/lay1/program/S23T3001C3002/jnet/resourcessearch/resultDetail.do"


def create_library_open_url(library: LibraryShortcut | str, title: str, custom_search_title: Optional[str] = None) -> str:
    """Build the search page URL of a library for a book title.

    Returns ``'#'`` for an unknown library name.
    """
    try:
        shortcut = LibraryShortcut(library)
    except ValueError:
        return '#'
    keyword = quote(search_keyword(title, custom_search_title), safe='')
    return _SEARCH_URLS[shortcut].format(keyword=keyword)


def paper_detail_url(row: PaperAvailability) -> Optional[str]:
    """Deep link to a loanable copy at the primary branch, when the row carries the keys"""
    if not row.has_detail_link:
        return None
    params = {
        'recKey': row.rec_key,
        'bookKey': row.book_key,
        'publishFormCode': row.publish_form_code,
    }
    return f"{PAPER_DETAIL_URL}?{urlencode(params)}"
