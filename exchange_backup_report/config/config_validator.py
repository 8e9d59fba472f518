"""Configuration validation for the backup report."""

from typing import Dict, List, Any

from .configuration import WEEKDAYS


class ConfigValidator:
    """Validates backup report configuration."""
    
    REQUIRED_SECTIONS = ['email', 'thresholds']
    REQUIRED_EMAIL_FIELDS = ['to_address', 'from_address', 'smtp_server']
    REQUIRED_THRESHOLD_FIELDS = ['lenient_day', 'lenient_day_hours', 'other_days_hours']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    
    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.
        
        Args:
            config: Configuration dictionary to validate.
            
        Raises:
            ValueError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping")
        
        self._validate_structure(config)
        self._validate_email_config(config['email'])
        self._validate_thresholds(config['thresholds'])
        self._validate_exclusions(config.get('exclusions'))
        self._validate_logging(config.get('logging'))
    
    def _validate_structure(self, config: Dict[str, Any]) -> None:
        """Validate basic configuration structure.
        
        Args:
            config: Configuration dictionary.
            
        Raises:
            ValueError: If required sections are missing.
        """
        missing_sections = [section for section in self.REQUIRED_SECTIONS if section not in config]
        if missing_sections:
            raise ValueError(f"Missing required configuration sections: {missing_sections}")
    
    def _validate_email_config(self, email_config: Dict[str, Any]) -> None:
        """Validate email configuration.
        
        Args:
            email_config: Email configuration dictionary.
            
        Raises:
            ValueError: If email configuration is invalid.
        """
        if not isinstance(email_config, dict):
            raise ValueError("Email configuration must be a mapping")
        
        missing_fields = [field for field in self.REQUIRED_EMAIL_FIELDS if not email_config.get(field)]
        if missing_fields:
            raise ValueError(f"Email configuration missing required fields: {missing_fields}")
        
        if 'smtp_port' in email_config:
            try:
                port = int(email_config['smtp_port'])
                if not (1 <= port <= 65535):
                    raise ValueError()
            except (ValueError, TypeError):
                raise ValueError(f"Email configuration has invalid SMTP port: {email_config['smtp_port']}")
    
    def _validate_thresholds(self, thresholds: Dict[str, Any]) -> None:
        """Validate threshold configuration.
        
        Args:
            thresholds: Threshold configuration dictionary.
            
        Raises:
            ValueError: If thresholds are invalid.
        """
        if not isinstance(thresholds, dict):
            raise ValueError("Threshold configuration must be a mapping")
        
        missing_fields = [field for field in self.REQUIRED_THRESHOLD_FIELDS if field not in thresholds]
        if missing_fields:
            raise ValueError(f"Threshold configuration missing required fields: {missing_fields}")
        
        lenient_day = str(thresholds['lenient_day']).lower()
        if lenient_day not in WEEKDAYS:
            raise ValueError(f"Invalid lenient_day: {thresholds['lenient_day']}")
        
        for key in ('lenient_day_hours', 'other_days_hours'):
            value = thresholds[key]
            # bool is an int subclass
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Threshold {key} must be a non-negative integer, got: {value!r}")
    
    def _validate_exclusions(self, exclusions: Any) -> None:
        """Validate the database exclusion list."""
        if exclusions is None:
            return
        
        if not isinstance(exclusions, list):
            raise ValueError("exclusions must be a list of database names")
        
        for i, name in enumerate(exclusions):
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Exclusion {i} must be a non-empty database name")
    
    def _validate_logging(self, logging_config: Any) -> None:
        """Validate logging configuration."""
        if logging_config is None:
            return
        
        if not isinstance(logging_config, dict):
            raise ValueError("Logging configuration must be a mapping")
        
        level = logging_config.get('level')
        if level is not None and str(level).upper() not in self.LOG_LEVELS:
            raise ValueError(f"Invalid log level: {level}")
