"""
curvelaunch Configuration Manager

Centralized configuration management supporting:
- Environment-based configs (development/staging/production/testnet)
- Config file loading (YAML/JSON)
- Command-line override support
- Environment variable support (CURVELAUNCH_*)
- Config validation
"""

import json
import os
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

from .core.constants import (
    DEFAULT_CREATION_FEE,
    DEFAULT_DEPLOY_FEE_SETTLEMENT,
    DEFAULT_DEPLOY_SETTLEMENT,
    DEFAULT_DEPLOY_UNITS,
    DEFAULT_FEE_PERCENT,
    DEFAULT_FINAL_MULTIPLIER,
    DEFAULT_INITIAL_MULTIPLIER,
    DEFAULT_PRICE_NORMALIZER,
    DEFAULT_PRICE_UPDATE_INTERVAL,
    DEFAULT_RAISE_TARGET_USD,
    DEFAULT_SALE_THRESHOLD,
    DEFAULT_TOTAL_SUPPLY,
    MAX_FEE_PERCENT,
)
from .core.curve_exceptions import ConfigurationError
from .core.defi.curve_config import CurveConfig, RaiseAccounting


DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent / "config"
ENV_PREFIX = "CURVELAUNCH_"


class Environment(Enum):
    """Environment types"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTNET = "testnet"


@dataclass
class CurveSettings:
    """Bonding curve parameters"""
    total_supply: int = DEFAULT_TOTAL_SUPPLY
    sale_threshold: int = DEFAULT_SALE_THRESHOLD
    raise_target_usd: int = DEFAULT_RAISE_TARGET_USD
    initial_multiplier: int = DEFAULT_INITIAL_MULTIPLIER
    final_multiplier: int = DEFAULT_FINAL_MULTIPLIER
    price_normalizer: int = DEFAULT_PRICE_NORMALIZER
    fee_percent: int = DEFAULT_FEE_PERCENT
    deploy_units: int = DEFAULT_DEPLOY_UNITS
    deploy_settlement: int = DEFAULT_DEPLOY_SETTLEMENT
    deploy_fee_settlement: int = DEFAULT_DEPLOY_FEE_SETTLEMENT
    clamp_price_fraction: bool = False
    raise_accounting: str = RaiseAccounting.GROSS.value

    def validate(self):
        """Validate curve settings"""
        if not (0 <= self.fee_percent <= MAX_FEE_PERCENT):
            raise ValueError(
                f"Invalid fee_percent: {self.fee_percent}. Must be between 0-{MAX_FEE_PERCENT}"
            )
        if self.raise_accounting.lower() not in [m.value for m in RaiseAccounting]:
            raise ValueError(
                f"Invalid raise_accounting: {self.raise_accounting}. Must be 'gross' or 'net'"
            )
        if self.sale_threshold > self.total_supply:
            raise ValueError(
                f"Invalid sale_threshold: {self.sale_threshold}. Must be <= total_supply"
            )


@dataclass
class OracleSettings:
    """Reference price feed settings"""
    price_update_interval: int = DEFAULT_PRICE_UPDATE_INTERVAL
    max_feed_age: Optional[int] = None
    feed_decimals: int = 8
    initial_price: int = 3000 * 10**8

    def validate(self):
        """Validate oracle settings"""
        if self.price_update_interval < 0:
            raise ValueError(
                f"Invalid price_update_interval: {self.price_update_interval}. Must be >= 0"
            )
        if self.max_feed_age is not None and self.max_feed_age <= 0:
            raise ValueError(f"Invalid max_feed_age: {self.max_feed_age}. Must be > 0")
        if not (0 <= self.feed_decimals <= 36):
            raise ValueError(f"Invalid feed_decimals: {self.feed_decimals}. Must be between 0-36")
        if self.initial_price <= 0:
            raise ValueError(f"Invalid initial_price: {self.initial_price}. Must be > 0")


@dataclass
class FactorySettings:
    """Token factory settings"""
    creation_fee: int = DEFAULT_CREATION_FEE
    fee_collector: str = ""
    liquidity_collector: str = ""

    def validate(self):
        """Validate factory settings"""
        if self.creation_fee < 0:
            raise ValueError(f"Invalid creation_fee: {self.creation_fee}. Must be >= 0")


@dataclass
class LoggingConfig:
    """Logging configuration settings"""
    level: str = "WARNING"
    enable_file_logging: bool = False
    log_file: str = "logs/curvelaunch.json"
    max_log_size: int = 10485760  # 10MB
    backup_count: int = 5
    enable_console_logging: bool = True

    def validate(self):
        """Validate logging configuration"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}. Must be one of {valid_levels}")
        if self.max_log_size < 1024:
            raise ValueError(f"Invalid max_log_size: {self.max_log_size}. Must be >= 1024")


class ConfigManager:
    """
    Configuration Manager for curvelaunch

    Handles loading, validation, and access to configuration settings
    from multiple sources with proper precedence:
    1. Command-line arguments (highest priority)
    2. Environment variables (CURVELAUNCH_*)
    3. Environment-specific config files
    4. Default config file
    5. Built-in defaults (lowest priority)
    """

    def __init__(self,
                 environment: Optional[str] = None,
                 config_dir: Optional[str] = None,
                 cli_overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize Configuration Manager

        Args:
            environment: Environment name (development/staging/production/testnet)
            config_dir: Directory containing config files
            cli_overrides: Command-line argument overrides ("section.key": value)
        """
        # .env values become visible to the environment-variable pass
        load_dotenv()

        self.environment = self._determine_environment(environment)
        self.config_dir = Path(config_dir).resolve() if config_dir else DEFAULT_CONFIG_DIR
        self.cli_overrides = cli_overrides or {}

        self.curve: CurveSettings = None
        self.oracle: OracleSettings = None
        self.factory: FactorySettings = None
        self.logging: LoggingConfig = None

        self._raw_config: Dict[str, Any] = {}

        self._load_configuration()

    def _determine_environment(self, environment: Optional[str]) -> Environment:
        """
        Determine the environment to use

        Priority:
        1. Passed environment parameter
        2. CURVELAUNCH_ENVIRONMENT environment variable
        3. Default to DEVELOPMENT
        """
        if environment:
            env_str = environment.lower()
        else:
            env_str = os.getenv(f"{ENV_PREFIX}ENVIRONMENT", "development").lower()

        env_mapping = {
            "dev": Environment.DEVELOPMENT,
            "development": Environment.DEVELOPMENT,
            "staging": Environment.STAGING,
            "stage": Environment.STAGING,
            "prod": Environment.PRODUCTION,
            "production": Environment.PRODUCTION,
            "testnet": Environment.TESTNET,
            "test": Environment.TESTNET,
        }

        return env_mapping.get(env_str, Environment.DEVELOPMENT)

    def _load_configuration(self):
        """Load configuration from all sources with proper precedence"""
        default_config = self._load_config_file("default")
        env_config = self._load_config_file(self.environment.value)
        merged_config = self._merge_configs(default_config, env_config)
        merged_config = self._apply_env_variables(merged_config)
        merged_config = self._apply_cli_overrides(merged_config)

        self._raw_config = merged_config

        try:
            self._parse_configuration(merged_config)
            self._validate_configuration()
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Invalid configuration: {exc}",
                details={"environment": self.environment.value},
            ) from exc

    def _load_config_file(self, filename: str) -> Dict[str, Any]:
        """
        Load configuration from YAML or JSON file

        Args:
            filename: Config filename (without extension)

        Returns:
            Configuration dictionary
        """
        yaml_path = self.config_dir / f"{filename}.yaml"
        if yaml_path.exists():
            with open(yaml_path, 'r') as f:
                return yaml.safe_load(f) or {}

        json_path = self.config_dir / f"{filename}.json"
        if json_path.exists():
            with open(json_path, 'r') as f:
                return json.load(f)

        return {}

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_variables(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides (CURVELAUNCH_*)

        Environment variables format:
        CURVELAUNCH_SECTION_KEY=value

        Example:
        CURVELAUNCH_CURVE_FEE_PERCENT=2
        CURVELAUNCH_ORACLE_PRICE_UPDATE_INTERVAL=60
        """
        result = {k: (dict(v) if isinstance(v, dict) else v) for k, v in config.items()}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            if key == f"{ENV_PREFIX}ENVIRONMENT":
                continue

            parts = key[len(ENV_PREFIX):].lower().split("_")
            if len(parts) < 2:
                continue

            section = parts[0]
            config_key = "_".join(parts[1:])

            if section in ("curve", "oracle", "factory", "logging"):
                if not isinstance(result.get(section), dict):
                    result[section] = {}
                result[section][config_key] = self._parse_env_value(value)

        return result

    def _parse_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Parse environment variable value to appropriate type"""
        try:
            return int(value)
        except ValueError:
            pass

        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _apply_cli_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply command-line argument overrides ("section.key": value)"""
        result = {k: (dict(v) if isinstance(v, dict) else v) for k, v in config.items()}

        for key, value in self.cli_overrides.items():
            parts = key.split(".")

            if len(parts) == 1:
                result[key] = value
            elif len(parts) == 2:
                section, config_key = parts
                if not isinstance(result.get(section), dict):
                    result[section] = {}
                result[section][config_key] = value

        return result

    def _parse_configuration(self, config: Dict[str, Any]):
        """Parse configuration into typed objects"""
        self.curve = CurveSettings(**(config.get("curve") or {}))
        self.oracle = OracleSettings(**(config.get("oracle") or {}))
        self.factory = FactorySettings(**(config.get("factory") or {}))
        self.logging = LoggingConfig(**(config.get("logging") or {}))

    def _validate_configuration(self):
        """Validate all configuration sections"""
        self.curve.validate()
        self.oracle.validate()
        self.factory.validate()
        self.logging.validate()

    def to_curve_config(self) -> CurveConfig:
        """Build the immutable CurveConfig injected into new curves."""
        return CurveConfig(
            price_update_interval=self.oracle.price_update_interval,
            max_feed_age=self.oracle.max_feed_age,
            **asdict(self.curve),
        )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key

        Args:
            key: Configuration key (e.g., "curve.fee_percent")
            default: Default value if key not found
        """
        value = self._raw_config

        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def get_section(self, section: str) -> Optional[Dict[str, Any]]:
        return self._raw_config.get(section)

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "curve": asdict(self.curve),
            "oracle": asdict(self.oracle),
            "factory": asdict(self.factory),
            "logging": asdict(self.logging),
        }

    def reload(self):
        """Reload configuration from files"""
        self._load_configuration()

    def __repr__(self) -> str:
        return f"ConfigManager(environment={self.environment.value})"


# Singleton instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(
    environment: Optional[str] = None,
    config_dir: Optional[str] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
    force_reload: bool = False
) -> ConfigManager:
    """
    Get or create ConfigManager singleton instance

    Args:
        environment: Environment name
        config_dir: Config directory path
        cli_overrides: CLI argument overrides
        force_reload: Force reload configuration
    """
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(
            environment=environment,
            config_dir=config_dir,
            cli_overrides=cli_overrides
        )

    return _config_manager
