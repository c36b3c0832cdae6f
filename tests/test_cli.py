# tests/test_cli.py
import pytest
from click.testing import CliRunner

from bookstock.cli.main import cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr('bookstock.cli.main.setup_logging', lambda level: None)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, service):
    def call(*args, **kwargs):
        return runner.invoke(cli, list(args), obj={'service': service}, catch_exceptions=False, **kwargs)
    return call


@pytest.fixture
def saved(persistence, make_book):
    persistence.rows = {
        1: make_book(1, title='데미안', author='헤르만 헤세 (지은이)', isbn13='9788937462010', rating=5, tags=['classic']),
        2: make_book(2),
    }
    return persistence


def test_list(invoke, saved):
    result = invoke('library', 'list', '--sort', 'rating', '--verbose')

    assert result.exit_code == 0
    assert '데미안 - 헤르만 헤세' in result.output
    assert '2 of 2 books' in result.output
    assert 'classic (1)' in result.output


def test_list_with_tag_filter(invoke, saved):
    result = invoke('library', 'list', '--tag', 'classic')

    assert '1 of 2 books' in result.output
    assert '아주 작은 습관의 힘' not in result.output


def test_rate(invoke, saved):
    result = invoke('library', 'rate', '2', '4')

    assert result.exit_code == 0
    assert saved.rows[2].rating == 4


def test_rate_out_of_range(invoke, saved):
    assert invoke('library', 'rate', '2', '7').exit_code == 2


def test_note_too_long(invoke, saved):
    result = invoke('library', 'note', '2', 'x' * 51)

    assert result.exit_code == 2
    assert 'at most 50' in result.output


def test_unknown_book(invoke, saved):
    result = invoke('library', 'favorite', '99')

    assert 'No book with id 99' in result.output
    assert saved.saved == []


def test_refresh_batch_needs_one_selection(invoke, saved):
    result = invoke('library', 'refresh-batch', '--all', '--recent', '3')

    assert result.exit_code == 2


def test_refresh_batch(invoke, saved):
    result = invoke('library', 'refresh-batch', '--range', '1-2')

    assert result.exit_code == 0
    # the catalog only knows the second book
    assert '1 succeeded, 1 failed' in result.output
    assert 'Failed: 1' in result.output


def test_links(invoke, saved):
    result = invoke('library', 'links', '1')

    assert 'lib.gjcity.go.kr/tc/' in result.output
    assert 'ebook.library.kr' in result.output


def test_search(invoke, saved):
    result = invoke('search', '습관')

    assert '9791162540640' in result.output
    assert '(saved)' in result.output
    assert '1 results' in result.output


def test_bulk_search(runner, invoke, saved):
    with runner.isolated_filesystem():
        with open('titles.txt', 'w', encoding='utf-8') as f:
            f.write('아주 작은 습관\n\n없는 제목\n')
        result = invoke('bulk-search', 'titles.txt')

    assert '[found] 아주 작은 습관' in result.output
    assert '[none] 없는 제목' in result.output
