# bookstock/cli/commands/library.py
import json
import click
from typing import Optional, Tuple

from bookstock.exceptions import BookstockError, InvalidEditError
from bookstock.models import PaperAvailability, ReadStatus
from bookstock.services import BatchCallbacks, RefreshSelection, SortKey
from bookstock.sources import LibraryShortcut, create_library_open_url, paper_detail_url
from ..utils import (
    create_progress_bar, get_service, load_book, print_book, print_failed, run
)


@click.group()
def library():
    """Saved books and their library stock"""
    pass


@library.command('list')
@click.option('--tag', 'tags', multiple=True, help='Only books carrying every given tag')
@click.option('--query', default='', help='Filter by title or author')
@click.option('--sort', 'sort_key', type=click.Choice([key.value for key in SortKey]), default=None,
              help='Sort key (dates sort newest first)')
@click.option('--reverse', is_flag=True, help='Flip the sort order')
@click.option('--errors', 'errors_only', is_flag=True, help='Only books whose last refresh had source errors')
@click.option('--verbose/--no-verbose', default=False, help='Show ISBN, tags and notes')
@click.pass_context
def list_books(ctx, tags: Tuple[str, ...], query: str, sort_key: Optional[str], reverse: bool,
               errors_only: bool, verbose: bool):
    """List the library

    Example:
        bookstock library list --sort rating --tag novel
    """
    service = get_service(ctx)
    run(service.load_library())

    store = service.store
    store.active_tag_ids = list(tags)
    store.library_query = query
    if sort_key and SortKey(sort_key) != store.sort_key:
        store.set_sort(sort_key)
    if reverse:
        store.set_sort(store.sort_key)

    books = store.library_view()
    if errors_only:
        books = [book for book in books if book.has_source_errors]

    for book in books:
        print_book(book, verbose)
    click.echo(click.style(f"\n{len(books)} of {len(store)} books", fg='blue'))
    if verbose and store.tag_counts:
        click.echo("Tags: " + ', '.join(f"{tag} ({count})" for tag, count in store.tag_counts.most_common()))


@library.command()
@click.argument('isbn')
@click.option('--refresh/--no-refresh', default=True, help='Fetch library stock after adding')
@click.pass_context
def add(ctx, isbn: str, refresh: bool):
    """Add a book to the library by ISBN"""
    service = get_service(ctx)

    async def add_book():
        await service.load_library()
        item = await service.lookup_isbn(isbn)
        if item is None:
            return None
        return await service.add_to_library(item, refresh=refresh)

    book = run(add_book())
    if book is not None:
        print_book(book, verbose=True)


@library.command()
@click.argument('book_id', type=int)
@click.pass_context
def remove(ctx, book_id: int):
    """Remove a book from the library"""
    service = get_service(ctx)

    async def remove_book():
        book = await load_book(service, book_id)
        if book is None:
            return False
        return await service.remove_from_library(book_id)

    if run(remove_book()):
        click.echo(click.style(f"Removed book {book_id}", fg='green'))


@library.command()
@click.argument('book_id', type=int)
@click.pass_context
def refresh(ctx, book_id: int):
    """Refresh the library stock of one book"""
    service = get_service(ctx)

    async def refresh_book():
        if await load_book(service, book_id) is None:
            return None
        if await service.refresh_book(book_id):
            return service.store.get(book_id)
        return None

    book = run(refresh_book())
    if book is not None:
        print_book(book, verbose=True)


def _selection(recent: Optional[int], oldest: Optional[int], index_range: Optional[str],
               all_books: bool, errors: bool) -> RefreshSelection:
    chosen = [recent is not None, oldest is not None, index_range is not None, all_books, errors]
    if sum(chosen) != 1:
        raise click.UsageError("Choose exactly one of --recent, --oldest, --range, --all, --errors")
    if recent is not None:
        return RefreshSelection.recent(recent)
    if oldest is not None:
        return RefreshSelection.oldest(oldest)
    if index_range is not None:
        try:
            start, end = (int(part) for part in index_range.split('-', 1))
            # 1-based and inclusive on the command line
            return RefreshSelection.index_range(start - 1, end)
        except ValueError:
            raise click.BadParameter("expected FROM-TO, e.g. 1-20", param_hint='--range')
    if all_books:
        return RefreshSelection.all()
    return RefreshSelection.errored()


@library.command('refresh-batch')
@click.option('--recent', type=int, default=None, help='The N most recently added books')
@click.option('--oldest', type=int, default=None, help='The N earliest added books')
@click.option('--range', 'index_range', default=None, help='Positions FROM-TO in the newest-first list')
@click.option('--all', 'all_books', is_flag=True, help='Every book')
@click.option('--errors', is_flag=True, help='Books whose last refresh had source errors')
@click.pass_context
def refresh_batch(ctx, recent, oldest, index_range, all_books, errors):
    """Refresh many books in rate-limited batches

    Example:
        bookstock library refresh-batch --recent 30
        bookstock library refresh-batch --range 1-50
    """
    selection = _selection(recent, oldest, index_range, all_books, errors)
    service = get_service(ctx)
    controller = service.batch_controller()

    async def run_batch():
        await service.load_library()
        total = len(selection.resolve(service.store))
        with create_progress_bar(total, 'Refreshing') as bar:
            def on_progress(progress):
                bar.update(progress.current - bar.pos)
            return await controller.run(selection, BatchCallbacks(on_progress=on_progress))

    summary = run(run_batch())
    print_failed(summary.failed_ids)


def _edit(ctx, book_id: int, edit) -> None:
    service = get_service(ctx)

    async def apply():
        if await load_book(service, book_id) is None:
            return None
        if await edit(service):
            return service.store.get(book_id)
        return None

    try:
        book = run(apply())
    except InvalidEditError as e:
        raise click.BadParameter(str(e))
    if book is not None:
        print_book(book, verbose=True)


@library.command()
@click.argument('book_id', type=int)
@click.argument('rating', type=click.IntRange(0, 5))
@click.pass_context
def rate(ctx, book_id: int, rating: int):
    """Set the star rating (0-5)"""
    _edit(ctx, book_id, lambda service: service.update_rating(book_id, rating))


@library.command()
@click.argument('book_id', type=int)
@click.argument('read_status', type=click.Choice([status.value for status in ReadStatus]))
@click.pass_context
def status(ctx, book_id: int, read_status: str):
    """Set the read status"""
    _edit(ctx, book_id, lambda service: service.update_read_status(book_id, read_status))


@library.command()
@click.argument('book_id', type=int)
@click.pass_context
def favorite(ctx, book_id: int):
    """Toggle the favorite flag"""
    _edit(ctx, book_id, lambda service: service.toggle_favorite(book_id))


@library.command()
@click.argument('book_id', type=int)
@click.argument('text', default='')
@click.pass_context
def note(ctx, book_id: int, text: str):
    """Set the note (at most 50 characters, empty clears it)"""
    _edit(ctx, book_id, lambda service: service.update_note(book_id, text))


@library.command()
@click.argument('book_id', type=int)
@click.argument('tag_id')
@click.option('--remove', 'remove_tag', is_flag=True, help='Remove the tag instead of adding it')
@click.pass_context
def tag(ctx, book_id: int, tag_id: str, remove_tag: bool):
    """Add or remove a tag"""
    if remove_tag:
        _edit(ctx, book_id, lambda service: service.remove_tag(book_id, tag_id))
    else:
        _edit(ctx, book_id, lambda service: service.add_tag(book_id, tag_id))


@library.command('search-title')
@click.argument('book_id', type=int)
@click.argument('title', default='')
@click.pass_context
def search_title(ctx, book_id: int, title: str):
    """Override the keyword used to search the libraries (empty restores the default)"""
    _edit(ctx, book_id, lambda service: service.set_custom_search_title(book_id, title))


@library.command()
@click.argument('book_id', type=int)
@click.pass_context
def links(ctx, book_id: int):
    """Print the library search pages for a book"""
    service = get_service(ctx)
    book = run(load_book(service, book_id))
    if book is None:
        return
    for shortcut in LibraryShortcut:
        url = create_library_open_url(shortcut, book.title, book.custom_search_title)
        click.echo(click.style(f"{shortcut.value}: ", fg='blue') + url)

    paper = book.gwangju_paper_info or {}
    for row in paper.get('book_list', []):
        detail = paper_detail_url(PaperAvailability.model_validate(row))
        if detail:
            click.echo(click.style("대출가능 상세: ", fg='green') + detail)


@library.command()
@click.argument('book_id', type=int)
@click.pass_context
def raw(ctx, book_id: int):
    """Fetch and print the unprocessed source payloads for a book"""
    service = get_service(ctx)

    async def fetch():
        book = await load_book(service, book_id)
        if book is None:
            return None
        try:
            return await service.raw_combined(book_id)
        except BookstockError as e:
            click.echo(click.style(str(e), fg='red'), err=True)
            return None

    data = run(fetch())
    if data is not None:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
