"""
Configuration models and data structures.

This module defines the configuration models used throughout the bridge,
providing type safety and validation for configuration values.
"""

import os
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

DEFAULT_TUS_HOST = "localhost"
DEFAULT_TUS_PORT = 1080
TUS_DATA_SUBDIRECTORY = "lfs_tusserver"


def url_host(host: str) -> str:
    """Bracket IPv6 literals for use in a URL authority."""
    return f"[{host}]" if ":" in host else host


@dataclass
class TusConfig:
    """Helper process (tusd) configuration."""
    host: str = f"{DEFAULT_TUS_HOST}:{DEFAULT_TUS_PORT}"
    behind_proxy: bool = False
    ext_origin: Optional[str] = None
    binary: str = "tusd"
    data_directory: Optional[str] = None
    ready_timeout: float = 10.0
    ready_poll_interval: float = 0.1
    request_timeout: float = 30.0

    def listen_address(self) -> Tuple[str, int]:
        """
        Split the configured ``host:port``.

        Missing or empty parts fall back to localhost and 1080. IPv6
        hosts must be bracketed (``[::]:1080``); the brackets are removed.
        """
        value = self.host or ""
        if value.startswith("["):
            host_part, bracket, rest = value[1:].partition("]")
            if not bracket or (rest and not rest.startswith(":")):
                raise ValueError(f"Invalid IPv6 host:port value: {value!r}")
            port_part = rest[1:]
        else:
            host_part, _, port_part = value.partition(":")
        host = host_part or DEFAULT_TUS_HOST
        port = int(port_part) if port_part else DEFAULT_TUS_PORT
        return host, port

    def upload_directory(self) -> str:
        """Directory the helper stores in-flight uploads in."""
        if self.data_directory:
            return self.data_directory
        return os.path.join(tempfile.gettempdir(), TUS_DATA_SUBDIRECTORY)

    def external_origin(self) -> str:
        """Origin used to build session URLs handed to clients."""
        if self.ext_origin:
            return self.ext_origin.rstrip("/")
        host, port = self.listen_address()
        return f"http://{url_host(host)}:{port}"


@dataclass
class ApiConfig:
    """Bridge HTTP API configuration."""
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_directory: str = "logs"
    max_file_size: str = "10MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = True


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    name: str = "tusbridge"
    version: str = "0.1.0"
    debug: bool = False
    environment: str = "production"

    tus: TusConfig = field(default_factory=TusConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Import path of the content store factory, "package.module:attribute"
    content_store: Optional[str] = None
    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_ports()
        self._validate_timeouts()
        self._validate_content_store()

    def _validate_ports(self) -> None:
        try:
            _, tus_port = self.tus.listen_address()
        except ValueError:
            raise ValueError(f"Invalid tus host:port value: {self.tus.host!r}")

        ports = [
            ("Tus port", tus_port),
            ("API port", self.api.port),
        ]

        for name, port in ports:
            if not (1 <= port <= 65535):
                raise ValueError(
                    f"{name} must be between 1 and 65535, got {port}")

    def _validate_timeouts(self) -> None:
        timeouts = [
            ("Tus ready timeout", self.tus.ready_timeout),
            ("Tus ready poll interval", self.tus.ready_poll_interval),
            ("Tus request timeout", self.tus.request_timeout),
        ]

        for name, timeout in timeouts:
            if timeout <= 0:
                raise ValueError(f"{name} must be positive, got {timeout}")

    def _validate_content_store(self) -> None:
        if self.content_store and ":" not in self.content_store:
            raise ValueError(
                "content_store must look like 'package.module:attribute', "
                f"got {self.content_store!r}")

    def ensure_directories(self) -> None:
        """Create the directories the running service writes to."""
        for path_str in (self.tus.upload_directory(), self.logging.log_directory):
            path = Path(path_str)
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ValueError(f"Cannot create directory {path}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get('name', 'tusbridge'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            environment=data.get('environment', 'production'),
            tus=TusConfig(**data.get('tus', {})),
            api=ApiConfig(**data.get('api', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            content_store=data.get('content_store'),
            config_file_path=data.get('config_file_path'),
        )
