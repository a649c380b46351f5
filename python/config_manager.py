"""
Configuration Management Module
Loads and validates configuration from config.yaml
"""

import yaml
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class ScoringWeights:
    """Weighting policy applied by the match scorer

    name_parts are fractions of the name score, address_parts are points
    out of 100, overall holds the multipliers of the name and address
    scores, and the bonuses are flat points added to the overall score.
    """
    name_parts: Dict[str, float] = field(default_factory=lambda: {
        'last': 0.50,
        'first': 0.35,
        'middle': 0.15
    })
    address_parts: Dict[str, float] = field(default_factory=lambda: {
        'country': 40,
        'city': 25,
        'state': 20,
        'street': 15
    })
    overall: Dict[str, float] = field(default_factory=lambda: {
        'name': 0.6,
        'address': 0.15
    })
    dob_bonus: float = 20
    identifier_bonus: float = 5

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name_parts': dict(self.name_parts),
            'address_parts': dict(self.address_parts),
            'overall': dict(self.overall),
            'dob_bonus': self.dob_bonus,
            'identifier_bonus': self.identifier_bonus
        }


@dataclass
class MatchingConfig:
    """Matching configuration parameters"""
    threshold: int = 85
    prefix_scale: float = 0.1
    max_prefix_length: int = 4
    match_aliases: bool = False
    weights: ScoringWeights = field(default_factory=ScoringWeights)


@dataclass
class PerformanceConfig:
    """Performance configuration"""
    concurrent_searches: bool = True
    max_threads: int = 4
    batch_size: int = 500
    parallel_min_candidates: int = 5000


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    file: Optional[str] = None
    console: bool = True
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class AuditConfig:
    """Screening audit log configuration"""
    enabled: bool = False
    log_dir: str = "logs"


@dataclass
class AlgorithmConfig:
    """Algorithm version information"""
    version: str = "1.0.0"
    name: str = "Jaro-Winkler Weighted Matcher"
    last_updated: str = "2026-10-18"


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


class ConfigManager:
    """Manages system configuration"""

    _instance: Optional['ConfigManager'] = None

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to config.yaml file
        """
        self.config_path = Path(config_path) if config_path else self._find_config()
        self._raw_config: Dict[str, Any] = {}
        self.matching: MatchingConfig = MatchingConfig()
        self.performance: PerformanceConfig = PerformanceConfig()
        self.logging: LoggingConfig = LoggingConfig()
        self.audit: AuditConfig = AuditConfig()
        self.algorithm: AlgorithmConfig = AlgorithmConfig()

        if self.config_path and self.config_path.exists():
            self.load()
        else:
            logger.debug(f"Config file not found at {self.config_path}, using defaults")

    def _find_config(self) -> Path:
        """Find config.yaml in common locations"""
        search_paths = [
            Path(__file__).parent / "config.yaml",
            Path.cwd() / "config.yaml",
            Path.cwd() / "python" / "config.yaml",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return search_paths[0]

    def load(self) -> None:
        """Load configuration from YAML file"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Config file not readable: {self.config_path} ({e})")

        if not isinstance(self._raw_config, dict):
            raise ConfigurationError("Config file must contain a mapping at the top level")

        self._parse_matching()
        self._parse_performance()
        self._parse_logging()
        self._parse_audit()
        self._parse_algorithm()
        self._validate()

    def _parse_matching(self) -> None:
        """Parse matching configuration"""
        cfg = self._raw_config.get('matching', {}) or {}
        weights_cfg = cfg.get('weights', {}) or {}
        defaults = ScoringWeights()

        weights = ScoringWeights(
            name_parts={**defaults.name_parts, **(weights_cfg.get('name_parts') or {})},
            address_parts={**defaults.address_parts, **(weights_cfg.get('address_parts') or {})},
            overall={**defaults.overall, **(weights_cfg.get('overall') or {})},
            dob_bonus=weights_cfg.get('dob_bonus', defaults.dob_bonus),
            identifier_bonus=weights_cfg.get('identifier_bonus', defaults.identifier_bonus)
        )

        self.matching = MatchingConfig(
            threshold=cfg.get('threshold', 85),
            prefix_scale=cfg.get('prefix_scale', 0.1),
            max_prefix_length=cfg.get('max_prefix_length', 4),
            match_aliases=cfg.get('match_aliases', False),
            weights=weights
        )

    def _parse_performance(self) -> None:
        """Parse performance configuration"""
        cfg = self._raw_config.get('performance', {}) or {}
        self.performance = PerformanceConfig(
            concurrent_searches=cfg.get('concurrent_searches', True),
            max_threads=cfg.get('max_threads', 4),
            batch_size=cfg.get('batch_size', 500),
            parallel_min_candidates=cfg.get('parallel_min_candidates', 5000)
        )

    def _parse_logging(self) -> None:
        """Parse logging configuration"""
        cfg = self._raw_config.get('logging', {}) or {}
        self.logging = LoggingConfig(
            level=cfg.get('level', 'INFO'),
            file=cfg.get('file'),
            console=cfg.get('console', True),
            format=cfg.get('format', self.logging.format)
        )

    def _parse_audit(self) -> None:
        """Parse audit log configuration"""
        cfg = self._raw_config.get('audit', {}) or {}
        self.audit = AuditConfig(
            enabled=cfg.get('enabled', False),
            log_dir=cfg.get('log_dir', 'logs')
        )

    def _parse_algorithm(self) -> None:
        """Parse algorithm configuration"""
        cfg = self._raw_config.get('algorithm', {}) or {}
        self.algorithm = AlgorithmConfig(
            version=str(cfg.get('version', self.algorithm.version)),
            name=cfg.get('name', self.algorithm.name),
            last_updated=str(cfg.get('last_updated', self.algorithm.last_updated))
        )

    @classmethod
    def get_instance(cls, config_path: Optional[str] = None) -> 'ConfigManager':
        """Get singleton instance of ConfigManager"""
        if cls._instance is None:
            cls._instance = ConfigManager(config_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)"""
        cls._instance = None

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary"""
        return {
            'matching': {
                'threshold': self.matching.threshold,
                'prefix_scale': self.matching.prefix_scale,
                'max_prefix_length': self.matching.max_prefix_length,
                'match_aliases': self.matching.match_aliases,
                'weights': self.matching.weights.to_dict()
            },
            'performance': {
                'concurrent_searches': self.performance.concurrent_searches,
                'max_threads': self.performance.max_threads,
                'batch_size': self.performance.batch_size,
                'parallel_min_candidates': self.performance.parallel_min_candidates
            },
            'logging': {
                'level': self.logging.level,
                'file': self.logging.file,
                'console': self.logging.console
            },
            'audit': {
                'enabled': self.audit.enabled,
                'log_dir': self.audit.log_dir
            },
            'algorithm': {
                'version': self.algorithm.version,
                'name': self.algorithm.name,
                'last_updated': self.algorithm.last_updated
            }
        }

    def _validate(self) -> None:
        """Validate configuration values

        Raises:
            ConfigurationError: If any value is out of range
        """
        weights = self.matching.weights

        name_total = sum(weights.name_parts.values())
        if abs(name_total - 1.0) > 0.01:
            raise ConfigurationError(
                f"Name part weights must sum to 1.0, got {name_total:.2f}"
            )

        address_total = sum(weights.address_parts.values())
        if abs(address_total - 100) > 0.5:
            raise ConfigurationError(
                f"Address part weights must sum to 100, got {address_total:.1f}"
            )

        if any(w < 0 for w in list(weights.name_parts.values()) + list(weights.address_parts.values())):
            raise ConfigurationError("Weights must not be negative")

        if not 0 <= self.matching.threshold <= 100:
            raise ConfigurationError(
                f"Match threshold must be within 0-100, got {self.matching.threshold}"
            )

        if not 0 <= self.matching.prefix_scale <= 0.25:
            raise ConfigurationError(
                f"prefix_scale must be within 0-0.25, got {self.matching.prefix_scale}"
            )

        if self.matching.max_prefix_length < 0:
            raise ConfigurationError("max_prefix_length must not be negative")

        if self.performance.max_threads < 1:
            raise ConfigurationError("max_threads must be at least 1")

        if self.performance.batch_size < 1:
            raise ConfigurationError("batch_size must be at least 1")

        if not isinstance(logging.getLevelName(str(self.logging.level).upper()), int):
            raise ConfigurationError(f"Unknown logging level: {self.logging.level}")


def get_config(config_path: Optional[str] = None) -> ConfigManager:
    """Convenience function to get configuration instance"""
    return ConfigManager.get_instance(config_path)


_installed_handlers = []


def configure_logging(config: Optional[ConfigManager] = None) -> None:
    """Install console/file handlers on the root logger from LoggingConfig

    Calling it again replaces the handlers it installed before.
    """
    config = config or get_config()
    log_cfg = config.logging
    root = logging.getLogger()

    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    formatter = logging.Formatter(log_cfg.format)

    if log_cfg.console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        _installed_handlers.append(console_handler)

    if log_cfg.file:
        log_path = Path(log_cfg.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root.addHandler(handler)
    root.setLevel(str(log_cfg.level).upper())
