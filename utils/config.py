"""
Configuration management for the Talkscriber client.

Provides centralized configuration for logging, metrics and the service
credentials/endpoints, all overridable through environment variables.
"""

import os
from typing import Optional
from dataclasses import dataclass

DEFAULT_STT_ENDPOINT = "wss://api.talkscriber.com:9090"
DEFAULT_TTS_ENDPOINT = "wss://api.talkscriber.com:9099"

def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).lower() == "true"

@dataclass
class LoggingConfig:
    """Configuration for logging system"""
    level: str = "INFO"
    format_type: str = "standard"  # standard, structured, minimal
    log_file: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_console: bool = True
    enable_colors: bool = True

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        """Create configuration from environment variables"""
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            format_type=os.getenv("LOG_FORMAT", "standard").lower(),
            log_file=os.getenv("LOG_FILE"),
            max_file_size=int(os.getenv("LOG_MAX_FILE_SIZE", "10485760")),  # 10MB
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            enable_console=_env_flag("LOG_ENABLE_CONSOLE"),
            enable_colors=_env_flag("LOG_ENABLE_COLORS")
        )

@dataclass
class MetricsConfig:
    """Configuration for metrics collection"""
    enabled: bool = True
    max_metrics: int = 10000
    enable_performance_logging: bool = True
    log_slow_operations_ms: float = 1000  # Log operations slower than this

    @classmethod
    def from_env(cls) -> 'MetricsConfig':
        """Create configuration from environment variables"""
        return cls(
            enabled=_env_flag("METRICS_ENABLED"),
            max_metrics=int(os.getenv("METRICS_MAX_COUNT", "10000")),
            enable_performance_logging=_env_flag("METRICS_LOG_PERFORMANCE"),
            log_slow_operations_ms=float(os.getenv("METRICS_SLOW_THRESHOLD_MS", "1000"))
        )

@dataclass
class ServiceConfig:
    """Credentials and endpoints of the remote speech service"""
    api_key: Optional[str] = None
    stt_endpoint: str = DEFAULT_STT_ENDPOINT
    tts_endpoint: str = DEFAULT_TTS_ENDPOINT

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Create configuration from environment variables"""
        return cls(
            api_key=os.getenv("TALKSCRIBER_API_KEY"),
            stt_endpoint=os.getenv("TALKSCRIBER_STT_ENDPOINT", DEFAULT_STT_ENDPOINT),
            tts_endpoint=os.getenv("TALKSCRIBER_TTS_ENDPOINT", DEFAULT_TTS_ENDPOINT)
        )

@dataclass
class ClientConfig:
    """Main configuration for the Talkscriber client"""
    environment: str = "development"  # development, production, testing
    logging: LoggingConfig = None
    metrics: MetricsConfig = None
    service: ServiceConfig = None

    def __post_init__(self):
        if self.logging is None:
            self.logging = LoggingConfig.from_env()
        if self.metrics is None:
            self.metrics = MetricsConfig.from_env()
        if self.service is None:
            self.service = ServiceConfig.from_env()

    @classmethod
    def from_env(cls) -> 'ClientConfig':
        """Create configuration from environment variables"""
        env = os.getenv("TALKSCRIBER_ENV", "development").lower()

        config = cls(environment=env)

        # Environment-specific defaults, explicit LOG_* variables still win
        if env == "production":
            config.logging.level = os.getenv("LOG_LEVEL", "INFO").upper()
            config.logging.format_type = os.getenv("LOG_FORMAT", "structured").lower()
            config.logging.enable_colors = False
        elif env == "testing":
            config.logging.level = os.getenv("LOG_LEVEL", "WARNING").upper()
            config.logging.format_type = os.getenv("LOG_FORMAT", "minimal").lower()
            config.logging.enable_colors = False
            config.metrics.enabled = False
        else:  # development
            config.logging.level = os.getenv("LOG_LEVEL", "DEBUG").upper()

        return config

# Global configuration instance
_global_config: Optional[ClientConfig] = None

def get_config() -> ClientConfig:
    """Get the global configuration instance"""
    global _global_config
    if _global_config is None:
        _global_config = ClientConfig.from_env()
    return _global_config

def set_config(config: Optional[ClientConfig]) -> None:
    """Set (or with None, reset) the global configuration instance"""
    global _global_config
    _global_config = config

def is_development() -> bool:
    """Check if running in development environment"""
    return get_config().environment == "development"

def is_production() -> bool:
    """Check if running in production environment"""
    return get_config().environment == "production"

def is_testing() -> bool:
    """Check if running in testing environment"""
    return get_config().environment == "testing"

def should_log_performance() -> bool:
    """Check if performance logging is enabled"""
    metrics = get_config().metrics
    return metrics.enabled and metrics.enable_performance_logging

def get_slow_operation_threshold() -> float:
    """Get the threshold for logging slow operations"""
    return get_config().metrics.log_slow_operations_ms

# Environment variable documentation
ENV_VARS_DOCUMENTATION = """
Talkscriber Client Environment Variables:

=== Service ===
TALKSCRIBER_API_KEY        - API key sent in the authentication handshake
TALKSCRIBER_STT_ENDPOINT   - Speech-to-text WebSocket URI (default: wss://api.talkscriber.com:9090)
TALKSCRIBER_TTS_ENDPOINT   - Text-to-speech WebSocket URI (default: wss://api.talkscriber.com:9099)

=== Logging Configuration ===
LOG_LEVEL                  - Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_FORMAT                 - Log format (standard, structured, minimal)
LOG_FILE                   - Log file path (optional)
LOG_MAX_FILE_SIZE          - Maximum log file size in bytes (default: 10485760)
LOG_BACKUP_COUNT           - Number of backup log files (default: 5)
LOG_ENABLE_CONSOLE         - Enable console logging (true/false, default: true)
LOG_ENABLE_COLORS          - Enable colored console output (true/false, default: true)

=== Metrics Configuration ===
METRICS_ENABLED            - Enable metrics collection (true/false, default: true)
METRICS_MAX_COUNT          - Maximum number of metrics to keep (default: 10000)
METRICS_LOG_PERFORMANCE    - Enable performance logging (true/false, default: true)
METRICS_SLOW_THRESHOLD_MS  - Threshold for logging slow operations in ms (default: 1000)

=== Environment ===
TALKSCRIBER_ENV            - Environment mode (development, production, testing)

Examples:
  # Development with debug logging
  export TALKSCRIBER_ENV=development

  # Production with structured logging to a file
  export TALKSCRIBER_ENV=production
  export LOG_FILE=/var/log/talkscriber-client.log
"""
