"""
Configuration loader for the IGD port mapping scanner
Loads and validates configuration from YAML files and command line overrides
"""

import copy
import yaml
import logging
from typing import Dict, Any, Optional
from pathlib import Path
from datetime import datetime
import pytz

logger = logging.getLogger(__name__)

DEFAULTS = {
    'network': {
        'host': None,
        'port': ':1900'
    },
    'discovery': {
        'max_wait_seconds': 5,
        'num_sends': 2,
        'window_padding_ms': 100,
        'search_target': 'upnp:rootdevice'
    },
    'gateway': {
        'service_types': ['WANIPConnection:1', 'WANIPConnection:2', 'WANPPPConnection:1'],
        'non_strict': True
    },
    'http': {
        'request_timeout': 5
    },
    'enumeration': {
        'max_entries': 50,
        'treat_faults_as_end_of_table': False
    },
    'logging': {
        'level': 'INFO',
        'file': None,
        'console_output': True,
        'timezone': 'UTC'
    }
}

def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    Without a path only the defaults are used
    """
    config = {}
    if config_path:
        try:
            config_file = Path(config_path)
            if not config_file.exists():
                logger.error(f"Configuration file not found: {config_path}")
                raise FileNotFoundError(f"Config file not found: {config_path}")

            with open(config_file, 'r') as f:
                config = yaml.safe_load(f) or {}

            if not isinstance(config, dict):
                raise ValueError(f"Configuration root must be a mapping, got {type(config).__name__}")

        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise

    config = _apply_defaults(config)
    _validate_config(config)

    if config_path:
        logger.info(f"Configuration loaded from {config_path}")
    return config

def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""
    for section, section_defaults in DEFAULTS.items():
        if config.get(section) is None:
            config[section] = {}
        if not isinstance(config[section], dict):
            raise ValueError(f"Configuration section {section} must be a mapping")
        for key, default_value in section_defaults.items():
            if key not in config[section]:
                config[section][key] = copy.deepcopy(default_value)
    return config

def _validate_config(config: Dict) -> None:
    """Validate value types and ranges"""
    discovery = config['discovery']
    if not isinstance(discovery['max_wait_seconds'], int) or discovery['max_wait_seconds'] < 1:
        raise ValueError("discovery.max_wait_seconds must be a positive integer")
    if not isinstance(discovery['num_sends'], int) or discovery['num_sends'] < 1:
        raise ValueError("discovery.num_sends must be a positive integer")
    if not isinstance(discovery['window_padding_ms'], int) or discovery['window_padding_ms'] < 0:
        raise ValueError("discovery.window_padding_ms must be a non-negative integer")

    gateway = config['gateway']
    if not gateway['service_types']:
        raise ValueError("gateway.service_types must not be empty")

    timeout = config['http']['request_timeout']
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError("http.request_timeout must be positive")

    max_entries = config['enumeration']['max_entries']
    if max_entries is not None and (not isinstance(max_entries, int) or max_entries < 0):
        raise ValueError("enumeration.max_entries must be a non-negative integer or null")

    log_config = config['logging']
    if not isinstance(getattr(logging, str(log_config['level']).upper(), None), int):
        raise ValueError(f"logging.level is not a logging level: {log_config['level']}")
    if log_config['timezone'] not in pytz.all_timezones_set:
        raise ValueError(f"logging.timezone is not a known time zone: {log_config['timezone']}")

def apply_cli_overrides(config: Dict, args) -> Dict:
    """Command line flags win over the configuration file"""
    if getattr(args, 'host', None):
        config['network']['host'] = args.host
    if getattr(args, 'port', None):
        config['network']['port'] = args.port
    if getattr(args, 'max_entries', None) is not None:
        config['enumeration']['max_entries'] = args.max_entries
    if getattr(args, 'log_level', None):
        config['logging']['level'] = args.log_level

    _validate_config(config)
    if not config['network']['host']:
        raise ValueError("network.host is required (use --host)")
    return config


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured time zone"""

    def __init__(self, fmt=None, timezone: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(timezone)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    timezone = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, timezone)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.debug(f"Logging configured: level={level}, timezone={timezone}, console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    sample = copy.deepcopy(DEFAULTS)
    sample['network']['host'] = '192.168.1.1'
    sample['logging']['file'] = 'logs/igd_portmap.log'
    return sample
