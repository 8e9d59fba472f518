"""Configuration management for the backup report."""

import os
import yaml
from typing import Dict, List, Any, Optional

from .config_validator import ConfigValidator
from .configuration import Configuration
from ..exceptions import ConfigNotFound


class ConfigManager:
    """Manages configuration loading and validation for the backup report."""

    DEFAULT_CONFIG_LOCATIONS = [
        "settings.yaml",
        "settings.yml",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "settings.yaml"),
        "/etc/exchange-backup-report/settings.yaml",
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file.

        Returns:
            Dictionary containing configuration data.

        Raises:
            ConfigNotFound: If config file cannot be found, parsed or validated.
        """
        config_file = self._find_config_file()

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigNotFound(f"Invalid YAML in config file {config_file}: {e}") from e
        except OSError as e:
            raise ConfigNotFound(f"Error reading config file {config_file}: {e}") from e

        try:
            self.validator.validate(self.config_data)
        except ValueError as e:
            raise ConfigNotFound(f"Invalid config file {config_file}: {e}") from e

        self._set_defaults()

        return self.config_data

    def _find_config_file(self) -> str:
        """Find configuration file in default locations.

        Returns:
            Path to configuration file.

        Raises:
            ConfigNotFound: If no config file is found.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            raise ConfigNotFound(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        raise ConfigNotFound(
            "Configuration file not found in any of these locations:\n" +
            "\n".join(f"  - {loc}" for loc in self.DEFAULT_CONFIG_LOCATIONS) +
            "\n\nPlease copy settings.example.yaml to settings.yaml and customize it."
        )

    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        defaults = {
            'email': {
                'smtp_port': 25,
                'use_tls': False,
                'smtp_user': None,
                'smtp_pass': None,
                'subject': 'Exchange Database Backup Report'
            },
            'management': {
                'shell': 'powershell',
                'snapin': None,
                'timeout_seconds': 300
            },
            'logging': {
                'level': 'INFO',
                'file': 'exchange_backup_report.log'
            }
        }

        for section, section_defaults in defaults.items():
            if not self.config_data.get(section):
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = value

        if self.config_data.get('exclusions') is None:
            self.config_data['exclusions'] = []

    def get_email_config(self) -> Dict[str, Any]:
        """Get email configuration."""
        return self.config_data.get('email', {})

    def get_threshold_config(self) -> Dict[str, Any]:
        """Get threshold configuration."""
        return self.config_data.get('thresholds', {})

    def get_exclusions(self) -> List[str]:
        """Get the names of databases excluded from the report."""
        return self.config_data.get('exclusions', [])

    def get_management_config(self) -> Dict[str, Any]:
        """Get Exchange management shell configuration."""
        return self.config_data.get('management', {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.config_data.get('logging', {})

    def build_configuration(self) -> Configuration:
        """Build the typed run configuration from the loaded data.

        Returns:
            Configuration for the current run.
        """
        email_config = self.get_email_config()
        thresholds = self.get_threshold_config()

        return Configuration(
            to_address=email_config['to_address'],
            from_address=email_config['from_address'],
            smtp_server=email_config['smtp_server'],
            smtp_port=int(email_config.get('smtp_port', 25)),
            use_tls=bool(email_config.get('use_tls', False)),
            smtp_user=email_config.get('smtp_user'),
            smtp_pass=email_config.get('smtp_pass'),
            subject=email_config.get('subject') or 'Exchange Database Backup Report',
            lenient_day=str(thresholds['lenient_day']),
            lenient_day_hours=thresholds['lenient_day_hours'],
            other_days_hours=thresholds['other_days_hours'],
            excluded_databases=frozenset(name.strip().lower() for name in self.get_exclusions())
        )
