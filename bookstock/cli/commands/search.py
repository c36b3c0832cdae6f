# bookstock/cli/commands/search.py
import click

from bookstock.services import BulkSearchStatus
from bookstock.services.bulk_search import parse_book_titles
from bookstock.sources import QueryType
from ..utils import create_progress_bar, get_service, run

_STATUS_COLORS = {
    BulkSearchStatus.FOUND: 'green',
    BulkSearchStatus.MULTIPLE: 'yellow',
    BulkSearchStatus.NONE: 'red',
    BulkSearchStatus.ERROR: 'red',
}


@click.command()
@click.argument('query')
@click.option('--type', 'query_type', type=click.Choice([t.value for t in QueryType]),
              default=QueryType.KEYWORD.value, help='Field the query applies to')
@click.pass_context
def search(ctx, query: str, query_type: str):
    """Search the book catalog

    Example:
        bookstock search "채식주의자" --type Title
    """
    service = get_service(ctx)

    async def run_search():
        await service.load_library()
        return await service.search(query, QueryType(query_type))

    items = run(run_search())
    for item in items:
        saved = click.style(' (saved)', fg='green') if service.store.contains_isbn(item.isbn13) else ''
        ebook = click.style(' [e-book]', fg='magenta') if item.has_ebook else ''
        click.echo(click.style(item.isbn13 or '-', fg='cyan') + f"  {item.title} - {item.author}, "
                   f"{item.publisher} {item.pub_date}{ebook}{saved}")
    click.echo(click.style(f"\n{len(items)} results", fg='blue'))


@click.command('bulk-search')
@click.argument('titles_file', type=click.File('r', encoding='utf-8'))
@click.option('--add', 'add_found', is_flag=True, help='Add every title with exactly one match')
@click.pass_context
def bulk_search(ctx, titles_file, add_found: bool):
    """Look up a list of titles, one per line"""
    titles = parse_book_titles(titles_file.read())
    if not titles:
        click.echo(click.style("No titles given", fg='yellow'))
        return

    service = get_service(ctx)
    bulk = service.bulk_search()

    async def run_bulk():
        await service.load_library()
        with create_progress_bar(len(titles), 'Searching') as bar:
            results = await bulk.search_bulk(titles, on_progress=lambda done, total, batch, batches: bar.update(1))
        if add_found:
            for result in results:
                if result.status == BulkSearchStatus.FOUND:
                    await service.add_to_library(result.selected_book, refresh=False)
        return results

    results = run(run_bulk())
    for result in results:
        color = _STATUS_COLORS[result.status]
        click.echo(click.style(f"[{result.status.value}] ", fg=color) + result.input_title +
                   click.style(f"  ({result.search_query})", fg='blue'))
        for item in result.search_results:
            click.echo(f"    {item.isbn13}  {item.title} - {item.author}")
        if result.error_message:
            click.echo(click.style(f"    {result.error_message}", fg='red'))
