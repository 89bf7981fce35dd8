import logging

import pytest

from hypha_lib.bootstrap import DEFAULT_SERVER_CONFIG, bootstrap_server
from hypha_lib.main import Config, create_lock_provider
from hypha_lib.session import FileLockProvider, KeyedLockProvider
from hypha_lib.storage import MemoryStorage, create_storage


logger = logging.getLogger(__name__)


def test_bootstrap_server_writes_defaults_once():
    storage = MemoryStorage()
    cfg = bootstrap_server(storage, logger)
    assert cfg == DEFAULT_SERVER_CONFIG

    storage.save('config', 'server_config', {'log_level': 'DEBUG'})
    assert bootstrap_server(storage, logger) == {'log_level': 'DEBUG'}


def test_bootstrap_server_creates_yaml_file(tmp_path):
    storage = create_storage(backend='file', serializer='yaml', data_dir=tmp_path)
    bootstrap_server(storage, logger)
    text = (tmp_path / 'config' / 'server_config.yml').read_text(encoding='utf-8')
    assert 'cookie_name: hyphaSession' in text


def test_bootstrap_server_rejects_non_mapping():
    storage = MemoryStorage()
    storage.save('config', 'server_config', ['nope'])
    with pytest.raises(ValueError):
        bootstrap_server(storage, logger)


def test_apply_server_config_overrides_session_keys_only():
    cfg = Config(data_dir='x').apply_server_config({
        'log_level': 'INFO',
        'session': {'cookie_name': 'wikiSid', 'strict_reads': True, 'data_dir': 'elsewhere'},
    })
    assert cfg.cookie_name == 'wikiSid'
    assert cfg.strict_reads is True
    assert cfg.data_dir == 'x'


def test_apply_server_config_without_session_section():
    assert Config().apply_server_config({}) == Config()


def test_apply_server_config_rejects_bad_section():
    with pytest.raises(ValueError):
        Config().apply_server_config({'session': 'strict'})


def test_lock_provider_follows_backend(tmp_path):
    assert isinstance(create_lock_provider(Config(storage_backend='memory')), KeyedLockProvider)
    provider = create_lock_provider(Config(storage_backend='file', data_dir=str(tmp_path)))
    assert isinstance(provider, FileLockProvider)
    assert provider.lock_dir == tmp_path / 'locks'


def test_create_storage_rejects_unknown_backend(tmp_path):
    with pytest.raises(ValueError):
        create_storage(backend='s3', data_dir=tmp_path)


def test_new_server_config_takes_session_defaults():
    storage = MemoryStorage()
    cfg = bootstrap_server(storage, logger, session_defaults={'auto_start': True})
    assert cfg['session']['auto_start'] is True
    assert cfg['session']['cookie_name'] == 'hyphaSession'
    # The module-level defaults are not mutated
    assert DEFAULT_SERVER_CONFIG['session']['auto_start'] is False
