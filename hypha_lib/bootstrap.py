"""Bootstrap helpers for hypha startup.

Performs the one-time work of making sure the server configuration
exists before the application is composed. Keeps `hypha_lib.main`
focused on wiring storages, the session store and the FastAPI app.
"""
import copy
from typing import Any, Dict, Optional

from hypha_lib.session import DEFAULT_COOKIE_NAME

CONFIG_NS = 'config'
SERVER_CONFIG_KEY = 'server_config'

DEFAULT_SERVER_CONFIG: Dict[str, Any] = {
    'schema_version': 1,
    'log_level': 'WARNING',
    'session': {
        'cookie_name': DEFAULT_COOKIE_NAME,
        'auto_start': False,
        'strict_reads': False,
    },
}


def bootstrap_server(storage_yaml, logger, session_defaults: Optional[Dict[str, Any]] = None) -> dict:
    """Ensure `server_config` exists and return it.

    Parameters
    - storage_yaml: StorageBackend holding YAML configs
    - logger: logger instance for informational messages
    - session_defaults: values for the `session` section of a newly
      created config, normally taken from the caller's `Config`

    A missing config is created from `DEFAULT_SERVER_CONFIG` so operators
    get an editable file on first start. An existing config is returned
    unchanged.
    """
    if not storage_yaml.exists(CONFIG_NS, SERVER_CONFIG_KEY):
        logger.info("server_config missing; creating default server_config.yml")
        default_cfg = copy.deepcopy(DEFAULT_SERVER_CONFIG)
        default_cfg['session'].update(session_defaults or {})
        storage_yaml.save(CONFIG_NS, SERVER_CONFIG_KEY, default_cfg)
    server_cfg = storage_yaml.load(CONFIG_NS, SERVER_CONFIG_KEY) or {}
    if not isinstance(server_cfg, dict):
        raise ValueError("invalid server_config format: expected mapping")
    return server_cfg
