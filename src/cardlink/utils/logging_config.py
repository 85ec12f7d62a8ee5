"""
Centralized logging configuration for CardLink.
Provides component-specific loggers with separate log files.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

from ..config import get_config


DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s'
SIMPLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class ComponentLogger:
    """Manages component-specific logging with separate files."""

    _loggers: Dict[str, logging.Logger] = {}
    _initialized = False
    _log_dir: Optional[Path] = None
    _unified_handler: Optional[logging.Handler] = None

    # Component definitions with their log levels
    COMPONENTS = {
        'api': {'level': logging.INFO, 'file': 'api.log'},
        'database': {'level': logging.INFO, 'file': 'database.log'},
        'auth': {'level': logging.INFO, 'file': 'auth.log'},
        'profiles': {'level': logging.INFO, 'file': 'profiles.log'},
        'tracking': {'level': logging.INFO, 'file': 'tracking.log'},
        'analytics': {'level': logging.INFO, 'file': 'analytics.log'},
        'orders': {'level': logging.INFO, 'file': 'orders.log'},
        'assets': {'level': logging.INFO, 'file': 'assets.log'},
        'main': {'level': logging.INFO, 'file': 'main.log'},
        'error': {'level': logging.ERROR, 'file': 'errors.log'},  # Centralized error log
    }

    @classmethod
    def initialize(cls, log_dir: Optional[str] = None, debug: bool = False) -> None:
        """
        Initialize the logging system with component-specific loggers.

        Args:
            log_dir: Directory for log files. Defaults to config.app.log_dir
            debug: Enable debug logging for all components
        """
        if cls._initialized:
            return

        config = get_config()
        debug = debug or config.server.debug
        to_file = config.app.log_to_file

        detailed_formatter = logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        simple_formatter = logging.Formatter(SIMPLE_FORMAT, datefmt='%H:%M:%S')

        session_dir = datetime.now().strftime("%Y%m%d_%H%M%S")
        if to_file:
            base_dir = Path(log_dir) if log_dir else Path(config.app.log_dir)
            cls._log_dir = base_dir / session_dir
            cls._log_dir.mkdir(parents=True, exist_ok=True)

            with open(cls._log_dir / "session_info.txt", 'w') as f:
                f.write(f"Session started: {datetime.now().isoformat()}\n")
                f.write(f"Debug mode: {debug}\n")
                f.write(f"Config:\n")
                f.write(f"  Database: {config.database.url}\n")
                f.write(f"  Public base URL: {config.app.public_base_url}\n")
                f.write(f"  Asset directory: {config.assets.directory}\n")
                f.write(f"  Log directory: {cls._log_dir}\n")

            cls._unified_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / 'unified.log',
                maxBytes=20 * 1024 * 1024,  # 20MB
                backupCount=3,
                encoding='utf-8'
            )
            cls._unified_handler.setFormatter(detailed_formatter)

        configured_level = getattr(logging, config.app.log_level.upper(), logging.INFO)
        root_level = logging.DEBUG if debug else configured_level
        if cls._unified_handler is not None:
            cls._unified_handler.setLevel(root_level)

        for component_name, component_config in cls.COMPONENTS.items():
            level = logging.DEBUG if debug else max(component_config['level'], configured_level)
            logger = cls._build_logger(component_name, level, component_config['file'], detailed_formatter)

            # Console handler for errors and critical
            if component_name in ['error', 'main'] and to_file:
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setLevel(logging.ERROR)
                console_handler.setFormatter(simple_formatter)
                logger.addHandler(console_handler)

        # Mark as initialized before logging to avoid recursion
        cls._initialized = True

        main_logger = cls._loggers['main']
        main_logger.info("=" * 80)
        main_logger.info("CardLink Logging System Initialized")
        main_logger.info(f"Session: {session_dir}")
        main_logger.info(f"Log directory: {cls._log_dir or 'disabled'}")
        main_logger.info(f"Debug mode: {debug}")
        main_logger.info("=" * 80)

    @classmethod
    def _build_logger(
        cls, component: str, level: int, filename: str, formatter: logging.Formatter
    ) -> logging.Logger:
        logger = logging.getLogger(f"cardlink.{component}")
        logger.handlers.clear()
        logger.propagate = False
        logger.setLevel(level)

        if cls._log_dir is not None:
            file_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / filename,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        if cls._unified_handler is not None:
            logger.addHandler(cls._unified_handler)

        if not logger.handlers:
            # File logging disabled; keep warnings visible on the console
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.WARNING)
            console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT, datefmt='%H:%M:%S'))
            logger.addHandler(console_handler)

        cls._loggers[component] = logger
        return logger

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name (api, database, tracking, etc.)
                      Can also be a module path like 'cardlink.services.tracker'

        Returns:
            Logger instance for the component
        """
        if not cls._initialized:
            cls.initialize()

        if component.startswith('cardlink.'):
            component = cls._component_for_module(component)

        if component not in cls._loggers:
            config = get_config()
            level = logging.DEBUG if config.server.debug else logging.INFO
            cls._build_logger(
                component,
                level,
                f'{component}.log',
                logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'),
            )

        return cls._loggers[component]

    @staticmethod
    def _component_for_module(module_name: str) -> str:
        """Map a module path like cardlink.services.tracker to its component."""
        parts = module_name.split('.')
        if len(parts) < 2:
            return 'main'
        if parts[1] in ('db', 'repositories'):
            return 'database'
        if parts[1] == 'auth':
            return 'auth'
        if parts[1] == 'api':
            return 'api'
        if parts[1] == 'services' and len(parts) >= 3:
            return {
                'profile_registry': 'profiles',
                'social_links': 'profiles',
                'qr': 'assets',
                'assets': 'assets',
                'tracker': 'tracking',
                'geo': 'tracking',
                'request_context': 'tracking',
                'analytics': 'analytics',
                'orders': 'orders',
            }.get(parts[2], 'main')
        return 'main'

    @classmethod
    def log_exception(cls, component: str, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Log an exception with context to both component and error logs.

        Args:
            component: Component where the exception occurred
            exc: The exception to log
            context: Additional context information
        """
        component_logger = cls.get_logger(component)
        error_logger = cls.get_logger('error')

        context_str = ""
        if context:
            context_str = " | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())

        component_logger.error(f"Exception in {component}: {type(exc).__name__}: {exc}{context_str}", exc_info=exc)
        error_logger.error(f"[{component}] {type(exc).__name__}: {exc}{context_str}", exc_info=exc)

    @classmethod
    def get_log_directory(cls) -> Optional[Path]:
        """Get the current log directory path."""
        return cls._log_dir


# Convenience functions
def get_logger(component: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return ComponentLogger.get_logger(component)


def initialize_logging(log_dir: Optional[str] = None, debug: bool = False) -> None:
    """Initialize the logging system."""
    ComponentLogger.initialize(log_dir=log_dir, debug=debug)


def log_exception(component: str, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with context."""
    ComponentLogger.log_exception(component, exc, context)


def get_log_directory() -> Optional[Path]:
    """Get the current log directory path."""
    return ComponentLogger.get_log_directory()
