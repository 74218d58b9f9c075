"""Configuration management for scilla.

Supports loading configuration from:
1. Default values
2. Config file (~/.config/scilla/config.yaml)
3. Environment variables

Configuration precedence: env vars > config file > defaults
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .constants import COMMITMENT_LEVELS
from .errors import ScillaError
from .logging import get_logger

logger = get_logger("config")

# Default values
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "scilla" / "config.yaml"
DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_COMMITMENT = "confirmed"
DEFAULT_KEYPAIR_PATH = "~/.config/solana/id.json"
DEFAULT_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 0.5

# Well-known cluster endpoints accepted as shorthands for rpc_url
CLUSTER_URLS = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "devnet": "https://api.devnet.solana.com",
    "localhost": "http://127.0.0.1:8899",
}


class ConfigError(ScillaError):
    """Configuration error."""

    pass


def expand_tilde(path: str | Path) -> Path:
    """Expand a leading '~/' against the user's home directory."""
    return Path(path).expanduser()


@dataclass
class RpcConfig:
    """RPC endpoint configuration."""

    url: str = DEFAULT_RPC_URL
    commitment: str = DEFAULT_COMMITMENT
    timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def validate(self) -> None:
        """Validate configuration.

        Raises ConfigError if validation fails.
        """
        if not self.url.startswith(("http://", "https://")):
            raise ConfigError(f"rpc_url must be an http(s) URL, got {self.url!r}")

        if self.commitment not in COMMITMENT_LEVELS:
            raise ConfigError(
                f"commitment must be one of {list(COMMITMENT_LEVELS)}, got {self.commitment!r}"
            )

        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")

        if self.poll_interval < 0:
            raise ConfigError(f"poll_interval must be >= 0, got {self.poll_interval}")

        if self.url.startswith("http://") and "127.0.0.1" not in self.url and "localhost" not in self.url:
            logger.warning("Using unencrypted RPC endpoint %s", self.url)


@dataclass
class Config:
    """Main configuration container."""

    rpc: RpcConfig = field(default_factory=RpcConfig)
    keypair_path: Path = field(default_factory=lambda: expand_tilde(DEFAULT_KEYPAIR_PATH))

    def validate(self) -> None:
        """Validate all configuration."""
        self.rpc.validate()


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file and environment.

    Args:
        config_path: Explicit path to config file (default: ~/.config/scilla/config.yaml)

    Returns:
        Validated Config object
    """
    config = Config()

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    # Load from file if exists
    if config_path.exists():
        try:
            config = _load_config_file(config_path)
            logger.debug("Loaded config from %s", config_path)
        except (OSError, ValueError, yaml.YAMLError, ConfigError) as e:
            logger.warning("Failed to load config from %s: %s", config_path, e)
            config = Config()
    else:
        logger.debug("No config file at %s, using defaults", config_path)

    # Override with environment variables
    config = _apply_env_overrides(config)

    # Validate
    config.validate()

    return config


def _load_config_file(config_path: Path) -> Config:
    """Load configuration from YAML file."""
    # Security: limit file size
    max_size = 64 * 1024  # 64KB
    if config_path.stat().st_size > max_size:
        raise ConfigError(f"Config file too large: {config_path.stat().st_size} > {max_size}")

    with open(config_path, encoding="utf-8") as f:
        # Use safe_load to prevent code execution
        data = yaml.safe_load(f)

    if data is None:
        return Config()

    if not isinstance(data, dict):
        raise ConfigError("Config file must be a YAML mapping")

    # Validate keys
    allowed_keys = {"rpc_url", "commitment", "keypair_path", "timeout", "poll_interval"}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        logger.warning("Unknown config keys ignored: %s", unknown_keys)

    rpc_url = str(data.get("rpc_url", DEFAULT_RPC_URL))
    rpc = RpcConfig(
        url=CLUSTER_URLS.get(rpc_url, rpc_url),
        commitment=str(data.get("commitment", DEFAULT_COMMITMENT)).lower(),
        timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
        poll_interval=float(data.get("poll_interval", DEFAULT_POLL_INTERVAL)),
    )

    return Config(
        rpc=rpc,
        keypair_path=expand_tilde(str(data.get("keypair_path", DEFAULT_KEYPAIR_PATH))),
    )


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config."""
    env_url = os.environ.get("SCILLA_RPC_URL")
    if env_url:
        config.rpc.url = CLUSTER_URLS.get(env_url, env_url)
        logger.debug("Using RPC URL from env: %s", config.rpc.url)

    env_commitment = os.environ.get("SCILLA_COMMITMENT")
    if env_commitment:
        config.rpc.commitment = env_commitment.lower()

    env_keypair = os.environ.get("SCILLA_KEYPAIR")
    if env_keypair:
        config.keypair_path = expand_tilde(env_keypair)

    return config


def save_config(config: Config, config_path: Path) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration to save
        config_path: Path to write config file
    """
    data = {
        "rpc_url": config.rpc.url,
        "commitment": config.rpc.commitment,
        "keypair_path": str(config.keypair_path),
        "timeout": config.rpc.timeout,
        "poll_interval": config.rpc.poll_interval,
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    logger.info("Saved config to %s", config_path)


def describe_config(config: Config) -> str:
    """Get human-readable summary of a configuration."""
    return (
        f"RPC URL:      {config.rpc.url}\n"
        f"Commitment:   {config.rpc.commitment}\n"
        f"Keypair Path: {config.keypair_path}\n"
        f"Timeout:      {config.rpc.timeout}s\n"
        f"Poll:         {config.rpc.poll_interval}s"
    )
