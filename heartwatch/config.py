"""Configuration loading from defaults, a YAML file, env vars, and CLI args."""

import argparse
import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "/etc/watchdog.yml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when the merged configuration cannot be used."""


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_int(value) -> int:
    """Convert to int, refusing fractional values instead of truncating them."""
    if isinstance(value, bool):
        raise ValueError("expected an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"not a whole number: {value}")
    return int(value)


@dataclass(frozen=True)
class WatchdogConfig:
    mode: str = ""
    host: str = "0.0.0.0"
    port: int = 4848
    timeout: float = 600.0
    attempts: int = 3
    key: str = ""
    script_dir: str = "/etc/watchdog.d/"
    remote: str = ""
    log_file: str = "/var/log/watchdog.log"
    log_level: str = "INFO"
    foreground: bool = False
    check_interval: float = 0.0
    script_timeout: float = 0.0
    connect_timeout: float = 0.0

    @property
    def effective_check_interval(self) -> float:
        return self.check_interval or self.timeout


# field name -> (yaml key, env var, converter)
_SOURCES = {
    "host": ("host", "WATCHDOG_HOST", str),
    "port": ("port", "WATCHDOG_PORT", _parse_int),
    "timeout": ("timeout", "WATCHDOG_TIMEOUT", float),
    "attempts": ("attempts", "WATCHDOG_ATTEMPTS", _parse_int),
    "key": ("key", "WATCHDOG_KEY", str),
    "script_dir": ("dir", "WATCHDOG_DIR", str),
    "remote": ("remote", "WATCHDOG_REMOTE", str),
    "log_file": ("logs", "WATCHDOG_LOGS", str),
    "log_level": ("log_level", "WATCHDOG_LOG_LEVEL", str),
    "foreground": ("foreground", "WATCHDOG_FOREGROUND", _parse_bool),
    "check_interval": ("check_interval", "WATCHDOG_CHECK_INTERVAL", float),
    "script_timeout": ("script_timeout", "WATCHDOG_SCRIPT_TIMEOUT", float),
    "connect_timeout": ("connect_timeout", "WATCHDOG_CONNECT_TIMEOUT", float),
}


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="heartwatch",
        description="Heartbeat watchdog: run recovery scripts when heartbeats stop.",
    )
    role = parser.add_mutually_exclusive_group()
    role.add_argument("--server", action="store_true", help="Run as server")
    role.add_argument("--client", action="store_true", help="Run as client")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE,
                        help=f"YAML configuration file (default: {DEFAULT_CONFIG_FILE})")
    parser.add_argument("--key", default=None, help="Pre-shared key (mandatory)")
    parser.add_argument("--port", type=int, default=None, help="Port to use (default: 4848)")
    parser.add_argument("--host", default=None, help="Address the server binds (default: 0.0.0.0)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Timeout in seconds; also the client send interval (default: 600)")
    parser.add_argument("--attempts", type=int, default=None,
                        help="Missed windows before running scripts (default: 3)")
    parser.add_argument("--check-interval", type=float, default=None,
                        help="Seconds between deadline checks (default: the timeout)")
    parser.add_argument("--dir", dest="script_dir", default=None,
                        help="Directory with recovery scripts (default: /etc/watchdog.d/)")
    parser.add_argument("--remote", default=None, help="Server host (client mode)")
    parser.add_argument("--logs", dest="log_file", default=None,
                        help="Log file (default: /var/log/watchdog.log)")
    parser.add_argument("--log-level", default=None, choices=LOG_LEVELS, type=str.upper)
    parser.add_argument("--foreground", action="store_true", default=None,
                        help="Stay in the foreground")
    return parser


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML mapping. A missing file yields an empty dict."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"{path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    logger.info("Loaded YAML config from %s", path)
    return data


def merge_config(cli_args: argparse.Namespace, yaml_data: dict,
                 environ=None) -> WatchdogConfig:
    """Merge sources with precedence defaults < YAML < env < CLI, then validate."""
    if environ is None:
        environ = os.environ

    kwargs = {}
    for name, (yaml_key, env_var, convert) in _SOURCES.items():
        value = None
        if yaml_data.get(yaml_key) is not None:
            value = yaml_data[yaml_key]
        if environ.get(env_var):
            value = environ[env_var]
        cli_value = getattr(cli_args, name, None)
        if cli_value is not None:
            value = cli_value
        if value is None:
            continue
        try:
            kwargs[name] = convert(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid value for {yaml_key}: {value!r}") from e

    if cli_args.server:
        kwargs["mode"] = "server"
    elif cli_args.client:
        kwargs["mode"] = "client"
    kwargs["key"] = kwargs.get("key", "").strip()
    kwargs["log_level"] = kwargs.get("log_level", WatchdogConfig.log_level).upper()

    config = WatchdogConfig(**kwargs)
    validate(config)
    return config


def validate(config: WatchdogConfig):
    if not config.key:
        raise ConfigError("key must be specified")
    if config.mode not in ("server", "client"):
        raise ConfigError("one of --server or --client must be given")
    if config.mode == "client" and not config.remote:
        raise ConfigError("remote host must be specified in client mode")
    if not 0 < config.port < 65536:
        raise ConfigError(f"port out of range: {config.port}")
    if config.timeout <= 0:
        raise ConfigError("timeout must be positive")
    if config.attempts < 1:
        raise ConfigError("attempts must be at least 1")
    for name in ("check_interval", "script_timeout", "connect_timeout"):
        if getattr(config, name) < 0:
            raise ConfigError(f"{name} must not be negative")
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(f"unknown log level: {config.log_level}")


def load_config(argv=None, environ=None) -> WatchdogConfig:
    """Parse argv, read the YAML file it points at, and build the config."""
    args = build_cli_parser().parse_args(argv)
    return merge_config(args, load_yaml_config(args.config), environ)
