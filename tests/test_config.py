"""
Tests for TOML configuration loading.
"""

import pytest


class TestLoadConfig:

    def test_defaults_without_file(self):
        from nist_time_sync.config import DEFAULT_CONFIG, load_config

        config = load_config(None)
        assert config == DEFAULT_CONFIG
        config['server']['host'] = 'changed'
        assert DEFAULT_CONFIG['server']['host'] == 'time.nist.gov'

    def test_partial_file_merged_over_defaults(self, tmp_path):
        from nist_time_sync.config import load_config

        path = tmp_path / 'config.toml'
        path.write_text('[sync]\ninterval_minutes = 15\n\n[server]\nhost = "time-a-g.nist.gov"\n')

        config = load_config(str(path))
        assert config['sync']['interval_minutes'] == 15
        assert config['sync']['poll_interval'] == 1.0
        assert config['server']['host'] == 'time-a-g.nist.gov'
        assert config['server']['port'] == 13

    def test_missing_file(self, tmp_path):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import load_config

        with pytest.raises(ConfigError):
            load_config(str(tmp_path / 'nope.toml'))

    def test_invalid_toml(self, tmp_path):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import load_config

        path = tmp_path / 'config.toml'
        path.write_text('[sync\ninterval_minutes = ')

        with pytest.raises(ConfigError):
            load_config(str(path))


class TestSyncConfig:

    def test_from_defaults(self):
        from nist_time_sync.config import DEFAULT_CONFIG, SyncConfig

        config = SyncConfig.from_dict(DEFAULT_CONFIG)
        assert config.server_address == "time.nist.gov:13"
        assert config.interval.minutes == 60
        assert config.poll_interval == 1.0
        assert config.service_name == 'nist-time-sync'

    def test_zero_interval_rejected(self):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import SyncConfig

        with pytest.raises(ConfigError) as exc_info:
            SyncConfig.from_dict({'sync': {'interval_minutes': 0}})
        assert "Interval must be higher than 0" in str(exc_info.value)

    @pytest.mark.parametrize("port", [0, 70000, "13", True])
    def test_bad_port_rejected(self, port):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import SyncConfig

        with pytest.raises(ConfigError):
            SyncConfig.from_dict({'server': {'port': port}})

    def test_bad_poll_interval_rejected(self):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import SyncConfig

        with pytest.raises(ConfigError):
            SyncConfig.from_dict({'sync': {'poll_interval': 0}})

    def test_overrides(self):
        from nist_time_sync.config import SyncConfig

        config = SyncConfig().with_server("127.0.0.1:1313").with_interval(5)
        assert (config.host, config.port) == ("127.0.0.1", 1313)
        assert config.interval.minutes == 5


class TestParseServerAddress:

    @pytest.mark.parametrize("address,expected", [
        ("time.nist.gov", ("time.nist.gov", 13)),
        ("time-a-g.nist.gov:13", ("time-a-g.nist.gov", 13)),
        ("127.0.0.1:1313", ("127.0.0.1", 1313)),
        ("[::1]:1313", ("::1", 1313)),
        ("[::1]", ("::1", 13)),
    ])
    def test_valid(self, address, expected):
        from nist_time_sync.config import parse_server_address
        assert parse_server_address(address) == expected

    @pytest.mark.parametrize("address", ["", ":13", "host:", "host:port", "host:99999", "[::1"])
    def test_invalid(self, address):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import parse_server_address

        with pytest.raises(ConfigError):
            parse_server_address(address)


class TestConfigValueTypes:
    """Wrong TOML types surface as ConfigError, never as a bare ValueError/TypeError."""

    @pytest.mark.parametrize("section,key,value", [
        ('server', 'timeout', "abc"),
        ('server', 'timeout', 0),
        ('server', 'timeout', float('inf')),
        ('server', 'timeout', True),
        ('sync', 'poll_interval', "fast"),
        ('sync', 'poll_interval', -1.0),
        ('sync', 'poll_interval', float('nan')),
    ])
    def test_bad_numbers(self, section, key, value):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import SyncConfig

        with pytest.raises(ConfigError) as exc_info:
            SyncConfig.from_dict({section: {key: value}})
        assert key in str(exc_info.value)

    @pytest.mark.parametrize("section,key,value", [
        ('server', 'host', 5),
        ('server', 'host', ""),
        ('service', 'name', ["nist"]),
        ('service', 'unit_dir', "  "),
    ])
    def test_bad_strings(self, section, key, value):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import SyncConfig

        with pytest.raises(ConfigError) as exc_info:
            SyncConfig.from_dict({section: {key: value}})
        assert key in str(exc_info.value)

    def test_section_must_be_table(self):
        from nist_time_sync.errors import ConfigError
        from nist_time_sync.config import SyncConfig

        with pytest.raises(ConfigError):
            SyncConfig.from_dict({'server': "time.nist.gov"})

    def test_integer_timeout_accepted(self):
        from nist_time_sync.config import SyncConfig

        config = SyncConfig.from_dict({'server': {'timeout': 5}})
        assert config.timeout == 5.0
        assert isinstance(config.timeout, float)
