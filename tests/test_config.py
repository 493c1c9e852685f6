"""
Unit tests for gitall.config module
"""
import unittest
import tempfile
import os
import shutil
import json
import logging
from pathlib import Path
from unittest.mock import patch

import yaml

from gitall.config import (
    load_config,
    save_config,
    get_default_config,
    get_config_path,
    get_log_path,
    configure_logging,
    merge_configs,
    apply_env_overrides,
)
from gitall.infra.github_client import RemoteInventory


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.original_home = os.environ.get('HOME')
        os.environ['HOME'] = self.temp_dir
        self.env_patch = patch.dict(os.environ, {}, clear=False)
        self.env_patch.start()
        for key in [k for k in os.environ if k.startswith('GITALL_')]:
            del os.environ[key]

    def tearDown(self):
        """Clean up test environment"""
        self.env_patch.stop()
        if self.original_home:
            os.environ['HOME'] = self.original_home
        else:
            del os.environ['HOME']
        shutil.rmtree(self.temp_dir)

    def _config_dir(self):
        config_dir = Path(self.temp_dir) / '.gitall'
        config_dir.mkdir(exist_ok=True)
        return config_dir

    def test_get_default_config(self):
        """Test default configuration structure"""
        config = get_default_config()

        for section in ('general', 'github', 'filters', 'logging'):
            self.assertIn(section, config)

        self.assertEqual(config['general']['protocol'], 'ssh')
        self.assertEqual(config['general']['parallel'], 1)
        self.assertEqual(config['github']['api_url'], 'https://api.github.com')
        self.assertIn('level', config['logging'])

    def test_load_config_no_file(self):
        """Test loading config when no file exists"""
        config = load_config()

        self.assertEqual(config, get_default_config())
        self.assertEqual(get_config_path(), Path(self.temp_dir) / '.gitall' / 'config.json')

    def test_load_config_json_file(self):
        """Test loading config from JSON file"""
        config_path = self._config_dir() / 'config.json'
        config_path.write_text(json.dumps({
            'general': {'protocol': 'https'},
            'logging': {'level': 'DEBUG'}
        }))

        config = load_config()

        self.assertEqual(config['general']['protocol'], 'https')
        # Untouched defaults survive the merge
        self.assertEqual(config['general']['parallel'], 1)
        self.assertEqual(config['logging']['level'], 'DEBUG')

    def test_load_config_toml_file(self):
        """Test loading config from TOML file"""
        (self._config_dir() / 'config.toml').write_text(
            '[general]\nprotocol = "svn"\n\n[github]\nper_page = 50\n'
        )

        config = load_config()

        self.assertEqual(config['general']['protocol'], 'svn')
        self.assertEqual(config['github']['per_page'], 50)

    def test_load_config_yaml_file(self):
        """Test loading config from YAML file"""
        (self._config_dir() / 'config.yaml').write_text(
            yaml.safe_dump({'filters': {'no_forks': True}})
        )

        config = load_config()

        self.assertTrue(config['filters']['no_forks'])

    def test_invalid_file_falls_back_to_defaults(self):
        (self._config_dir() / 'config.json').write_text('{not json')

        config = load_config()

        self.assertEqual(config['general']['protocol'], 'ssh')

    def test_gitall_config_env_var(self):
        custom = Path(self.temp_dir) / 'custom.json'
        custom.write_text(json.dumps({'general': {'host': 'git.example.com'}}))

        with patch.dict(os.environ, {'GITALL_CONFIG': str(custom)}):
            self.assertEqual(get_config_path(), custom)
            self.assertEqual(load_config()['general']['host'], 'git.example.com')

    @patch.dict(os.environ, {'GITALL_GENERAL_PROTOCOL': 'https'})
    def test_environment_override(self):
        """Test environment variable override"""
        config = load_config()

        self.assertEqual(config['general']['protocol'], 'https')

    @patch.dict(os.environ, {'GITALL_GENERAL_PROCESS_TIMEOUT_SECONDS': '30',
                             'GITALL_FILTERS_NO_ARCHIVED': 'true'})
    def test_multi_word_keys_and_types(self):
        """Keys containing underscores and typed values"""
        config = load_config()

        self.assertEqual(config['general']['process_timeout_seconds'], 30)
        self.assertIs(config['filters']['no_archived'], True)

    @patch.dict(os.environ, {'GITALL_GITHUB_BASE_DELAY': '1.5'})
    def test_float_values(self):
        """Fractional numbers are coerced so they can drive backoff arithmetic"""
        config = load_config()

        self.assertEqual(config['github']['base_delay'], 1.5)
        inventory = RemoteInventory.from_config(config)
        self.assertEqual(inventory.base_delay * 2, 3.0)

    def test_non_numeric_values_stay_strings(self):
        config = apply_env_overrides(get_default_config(), {
            'GITALL_GENERAL_HOST': '10.0.0.1',
            'GITALL_LOGGING_LEVEL': 'debug',
            'GITALL_UNKNOWN_KEY': '1',
            'OTHER_GENERAL_HOST': 'ignored',
        })

        self.assertEqual(config['general']['host'], '10.0.0.1')
        self.assertEqual(config['logging']['level'], 'debug')
        self.assertNotIn('unknown', config)

    @patch.dict(os.environ, {'GITALL_GITHUB_TOKEN': 'secret'})
    def test_token_from_environment(self):
        self.assertEqual(load_config()['github']['token'], 'secret')

    def test_save_config_json(self):
        config = get_default_config()
        config['general']['protocol'] = 'https'

        path = save_config(config)

        self.assertTrue(path.exists())
        self.assertEqual(load_config()['general']['protocol'], 'https')

    def test_save_config_yaml_and_toml(self):
        for name in ('config.yaml', 'config.toml'):
            path = Path(self.temp_dir) / name
            save_config({'general': {'parallel': 3}}, path)
            with patch.dict(os.environ, {'GITALL_CONFIG': str(path)}):
                self.assertEqual(load_config()['general']['parallel'], 3)

    def test_log_path_default_and_override(self):
        self.assertEqual(get_log_path(get_default_config()),
                         Path(self.temp_dir) / '.gitall' / 'gitall.log')
        self.assertEqual(get_log_path({'logging': {'file': '~/logs/g.log'}}),
                         Path(self.temp_dir) / 'logs' / 'g.log')

    def test_merge_configs_nested(self):
        merged = merge_configs({'a': {'b': 1, 'c': 2}}, {'a': {'c': 3}, 'd': 4})

        self.assertEqual(merged, {'a': {'b': 1, 'c': 3}, 'd': 4})

    def test_configure_logging(self):
        configure_logging({'logging': {'level': 'WARNING'}})
        self.assertEqual(logging.getLogger('gitall').level, logging.WARNING)

        configure_logging({'logging': {'level': 'WARNING'}}, verbose=True)
        self.assertEqual(logging.getLogger('gitall').level, logging.DEBUG)


if __name__ == '__main__':
    unittest.main()
