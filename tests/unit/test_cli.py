import json

from configstore_lib import cli


def test_parse_value():
    assert cli.parse_value('1') == 1
    assert cli.parse_value('{"a": true}') == {'a': True}
    assert cli.parse_value('false') is False
    assert cli.parse_value('dark') == 'dark'


def test_set_and_get(settings, capsys):
    assert cli.main(['set', 'theme', 'dark'], settings=settings) == 0
    assert cli.main(['set', 'theme', '"light"', '--scope', 'item', '--id', 'i1'], settings=settings) == 0
    capsys.readouterr()

    assert cli.main(['get', 'theme', '--item', 'i1'], settings=settings) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {'key': 'theme', 'scope': 'item', 'value': 'light'}

    assert cli.main(['get', 'theme', '--item', 'other'], settings=settings) == 0
    assert json.loads(capsys.readouterr().out)['value'] == 'dark'


def test_get_missing_returns_1(settings, capsys):
    assert cli.main(['get', 'nope'], settings=settings) == 1
    assert 'not set' in capsys.readouterr().err


def test_unset(settings):
    cli.main(['set', 'k', '1'], settings=settings)
    assert cli.main(['unset', 'k'], settings=settings) == 0
    assert cli.main(['unset', 'k'], settings=settings) == 1


def test_dump(settings, capsys):
    cli.main(['set', 'k', '[1, 2]', '--scope', 'folder', '--id', 'f1'], settings=settings)
    capsys.readouterr()
    assert cli.main(['dump'], settings=settings) == 0
    assert json.loads(capsys.readouterr().out) == {'$$folder||f1//plugin.sample//k': [1, 2]}


def test_scoped_set_without_id_fails(settings, capsys):
    assert cli.main(['set', 'k', '1', '--scope', 'item'], settings=settings) == 1
    assert 'requires a scope id' in capsys.readouterr().err


def test_lock_status_and_unlock(settings, tmp_path, capsys):
    (tmp_path / 'config.lock').touch()
    assert cli.main(['lock-status'], settings=settings) == 0
    report = json.loads(capsys.readouterr().out)
    assert report['sentinel_exists'] is True

    # held lock makes writes time out
    assert cli.main(['set', 'k', '1'], settings=settings) == 1
    assert 'Lock timeout' in capsys.readouterr().err

    assert cli.main(['unlock'], settings=settings) == 0
    assert 'removed' in capsys.readouterr().out
    assert not (tmp_path / 'config.lock').exists()
    assert cli.main(['set', 'k', '1'], settings=settings) == 0


def test_plugin_commands_need_plugin_id(settings, capsys):
    settings.plugin_id = None
    assert cli.main(['get', 'k'], settings=settings) == 2
    assert cli.main(['dump'], settings=settings) == 0
    assert cli.main(['--plugin-id', 'given', 'get', 'k'], settings=settings) == 1


def test_missing_settings_file(tmp_path, capsys):
    assert cli.main(['--settings', str(tmp_path / 'none.yml'), 'dump']) == 2
    assert 'Failed to load settings' in capsys.readouterr().err
