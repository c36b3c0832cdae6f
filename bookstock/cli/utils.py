# bookstock/cli/utils.py
import asyncio
import click
from typing import Any, Coroutine, List, Optional, TypeVar

from bookstock.config import Settings
from bookstock.models import CanonicalBook, StockInfo
from bookstock.services import LibraryService, Notification, NotificationLevel
from bookstock.utils.authors import parse_and_clean_authors

T = TypeVar("T")

_LEVEL_COLORS = {
    NotificationLevel.INFO: 'blue',
    NotificationLevel.SUCCESS: 'green',
    NotificationLevel.WARNING: 'yellow',
    NotificationLevel.ERROR: 'red',
}


def echo_notification(notification: Notification) -> None:
    click.echo(click.style(notification.message, fg=_LEVEL_COLORS[notification.level]),
               err=notification.level == NotificationLevel.ERROR)


def get_service(ctx: click.Context) -> LibraryService:
    """Service shared by the commands of one invocation, built on first use"""
    obj = ctx.ensure_object(dict)
    if 'service' not in obj:
        settings = obj.get('settings') or Settings.from_env()
        obj['service'] = LibraryService.from_settings(settings)
    if not obj.get('echoing'):
        obj['service'].notifier.subscribe(echo_notification)
        obj['echoing'] = True
    return obj['service']


def run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


async def load_book(service: LibraryService, book_id: int) -> Optional[CanonicalBook]:
    """Load the library and return one book, reporting an unknown id"""
    await service.load_library()
    book = service.store.get(book_id)
    if book is None:
        click.echo(click.style(f"No book with id {book_id}", fg='red'), err=True)
    return book


def format_stock(stock: Optional[StockInfo]) -> str:
    if stock is None:
        return '-'
    return f"{stock.available_count}/{stock.total_count}"


def print_book(book: CanonicalBook, verbose: bool = False) -> None:
    stars = '★' * book.rating + '☆' * (5 - book.rating)
    favorite = click.style(' ♥', fg='red') if book.is_favorite else ''
    click.echo(click.style(f"[{book.id}] ", fg='cyan') +
               click.style(book.title, fg='blue') +
               f" - {', '.join(parse_and_clean_authors(book.author))} {stars} ({book.read_status.value}){favorite}")
    click.echo(f"    퇴촌 {format_stock(book.toechon_stock)}  "
               f"기타 {format_stock(book.other_stock)}  "
               f"e교육 {format_stock(book.edu_ebook_stock)}  "
               f"e경기 {format_stock(book.gyeonggi_ebook_stock)}  "
               f"e시립 {format_stock(book.sirip_ebook_stock)}")
    if book.source_errors:
        click.echo(click.style(f"    errors: {', '.join(sorted(book.source_errors))}", fg='yellow'))
    if verbose:
        click.echo(f"    ISBN {book.isbn13}  tags: {', '.join(book.tags) or '-'}  note: {book.note or '-'}")
        if book.last_updated:
            click.echo(f"    updated {book.last_updated.isoformat(timespec='seconds')}")


def create_progress_bar(length: int, label: str = 'Processing') -> click.progressbar:
    """Create a standardized progress bar for long operations"""
    return click.progressbar(
        length=length,
        label=click.style(label, fg='blue'),
        show_eta=True,
        show_percent=True,
        width=50
    )


def print_failed(ids: List[int]) -> None:
    if ids:
        click.echo(click.style("Failed: ", fg='red') + click.style(', '.join(str(i) for i in ids), fg='cyan'))
