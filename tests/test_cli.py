import io
from argparse import ArgumentParser, Namespace
from typing import Optional

import httpretty
import pytest
import requests
import yaml
from requests.exceptions import ReadTimeout

from solidpod.cli import add_values_arguments, get_values, load_commands, main
from solidpod.cli.commands import read


@pytest.fixture
def parser():
    parser = ArgumentParser(prog='solidpod')
    parser.set_defaults(cmd_name=None)
    return parser


def test_load_commands(parser):
    subparsers = parser.add_subparsers(title='commands')
    command_modules = load_commands(subparsers)
    assert set(command_modules.keys()) == {'mkcontainer', 'ping', 'publish', 'read', 'update'}
    assert command_modules['read'] == read


def test_command_aliases(parser):
    subparsers = parser.add_subparsers(title='commands')
    load_commands(subparsers)
    assert parser.parse_args(['mkdir', 'Movies']).cmd_name == 'mkcontainer'
    assert parser.parse_args(['append', 'Movies', 'watchlist.txt', 'x']).cmd_name == 'update'


def test_get_values_from_args(parser):
    add_values_arguments(parser)
    args = parser.parse_args(['The Matrix', 'Inception'])
    assert list(get_values(args)) == ['The Matrix', 'Inception']


def test_get_values_from_file():
    args = Namespace(values_file=io.StringIO('6\n7\r\n5\n'), values=['8'])
    assert list(get_values(args)) == ['6', '7', '5', '8']


def test_get_values_from_stdin(monkeypatch):
    monkeypatch.setattr('sys.stdin', io.StringIO('a\nb\n'))
    args = Namespace(values_file=None, values=[])
    assert list(get_values(args)) == ['a', 'b']


@pytest.fixture
def run_main(tmp_path, monkeypatch):
    def _run_main(*argv: str, pod_url: str = 'http://localhost:3000/alice') -> Optional[int]:
        config_file = tmp_path / 'config.yml'
        config_file.write_text(yaml.safe_dump({'POD': {'URL': pod_url, 'LOG_DIR': str(tmp_path / 'logs')}}))
        monkeypatch.setattr('sys.argv', ['solidpod', '-c', str(config_file), *argv])
        try:
            main()
        except SystemExit as e:
            return e.code
        return None
    return _run_main


@httpretty.activate
def test_main_success(run_main, capsys):
    httpretty.register_uri(httpretty.GET, 'http://localhost:3000/alice/Movies/watchlist.txt', body='a\nb\n')
    assert run_main('read', 'Movies', 'watchlist.txt') is None
    assert capsys.readouterr().out == 'a\nb\n'


@pytest.mark.parametrize(
    'argv',
    [
        ('mkcontainer', 'a/b'),
        ('publish', 'Movies', '', 'x'),
        ('update', 'Movies', '..', 'x'),
    ]
)
def test_main_invalid_name(run_main, capsys, argv):
    assert run_main(*argv) == 1
    assert 'Name must not' in capsys.readouterr().err


def test_main_invalid_pod_url(run_main, capsys):
    assert run_main('ping', pod_url='localhost:3000') == 1
    assert "Invalid configuration in section 'POD'" in capsys.readouterr().err


@httpretty.activate
def test_main_protocol_error(run_main, capsys):
    httpretty.register_uri(httpretty.POST, 'http://localhost:3000/alice/Movies/', status=409)
    assert run_main('mkcontainer', 'Movies') == 1
    assert 'create failed for http://localhost:3000/alice/Movies/: 409 Conflict' in capsys.readouterr().err


def test_main_outcome_unknown(run_main, capsys, monkeypatch):
    def timeout(*args, **kwargs):
        raise ReadTimeout('Read timed out.')

    monkeypatch.setattr(requests.Session, 'request', timeout)
    assert run_main('publish', 'Movies', 'watchlist.txt', 'x') == 1
    err = capsys.readouterr().err
    assert 'publish failed' in err
    assert 'may or may not have been applied' in err
