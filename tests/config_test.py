import textwrap

import pytest

import wikirpc
from wikirpc.config import Config, REMOTE_USER_NOT_SET


def write_ini(tmp_path, text):
    path = tmp_path / 'wikirpc.ini'
    path.write_text(textwrap.dedent(text))
    return str(path)


def test_defaults_keep_remote_access_closed():
    config = Config()
    assert config.remote is False
    assert config.remoteuser == REMOTE_USER_NOT_SET
    assert config.useacl is False
    assert config.version == wikirpc.__version__


def test_unknown_options_are_rejected():
    with pytest.raises(ValueError):
        Config(remote_user='admin')


def test_from_file_parses_flags(tmp_path):
    filename = write_ini(tmp_path, """
        [wikirpc]
        remote = yes
        remoteuser = admin, @editors
        useacl = on
        version = Release 2024-02-06
        """)
    config = Config.from_file(filename)
    assert config.remote is True
    assert config.useacl is True
    assert config.remoteuser == 'admin, @editors'
    assert config.version == 'Release 2024-02-06'


def test_from_file_keeps_defaults_for_missing_options(tmp_path):
    filename = write_ini(tmp_path, """
        [wikirpc]
        remote = true
        """)
    config = Config.from_file(filename)
    assert config.remote is True
    assert config.remoteuser == REMOTE_USER_NOT_SET


def test_from_file_without_section_gives_defaults(tmp_path):
    filename = write_ini(tmp_path, """
        [other]
        remote = true
        """)
    assert Config.from_file(filename).remote is False


def test_from_file_rejects_unknown_options(tmp_path):
    filename = write_ini(tmp_path, """
        [wikirpc]
        remotes = true
        """)
    with pytest.raises(ValueError):
        Config.from_file(filename)
