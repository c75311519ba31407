"""
Centralized logging configuration for SoulLink Sync.
Provides component-specific loggers with optional separate log files.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

from ..config import get_config


class ComponentLogger:
    """Manages component-specific logging with separate files."""

    _loggers: Dict[str, logging.Logger] = {}
    _initialized = False
    _log_dir: Optional[Path] = None
    _debug = False

    # Component definitions with their log levels
    COMPONENTS = {
        'sanitizer': {'level': logging.INFO, 'file': 'sanitizer.log'},
        'progression': {'level': logging.INFO, 'file': 'progression.log'},
        'roster': {'level': logging.INFO, 'file': 'roster.log'},
        'store': {'level': logging.INFO, 'file': 'store.log'},
        'replication': {'level': logging.INFO, 'file': 'replication.log'},
        'remote': {'level': logging.INFO, 'file': 'remote.log'},
        'api': {'level': logging.INFO, 'file': 'api.log'},
        'websocket': {'level': logging.INFO, 'file': 'websocket.log'},
        'database': {'level': logging.INFO, 'file': 'database.log'},
        'main': {'level': logging.INFO, 'file': 'main.log'},
        'error': {'level': logging.ERROR, 'file': 'errors.log'},  # Centralized error log
    }

    DETAILED_FORMAT = (
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s'
    )

    @classmethod
    def initialize(cls, log_dir: Optional[str] = None, debug: Optional[bool] = None) -> None:
        """
        Initialize the logging system with component-specific loggers.

        Args:
            log_dir: Directory for log files. Defaults to config.app.log_dir
            debug: Enable debug logging for all components. Defaults to
                   config.app.log_level == "DEBUG"
        """
        if cls._initialized:
            return

        config = get_config()
        if debug is None:
            debug = config.app.log_level.upper() == "DEBUG"
        cls._debug = debug

        if config.app.log_to_file or log_dir:
            base_dir = Path(log_dir) if log_dir else Path(config.app.log_dir)
            # Session-specific subdirectory
            session_dir = datetime.now().strftime("%Y%m%d_%H%M%S")
            cls._log_dir = base_dir / session_dir
            cls._log_dir.mkdir(parents=True, exist_ok=True)

        simple_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        # Mark as initialized before creating loggers to avoid recursion
        cls._initialized = True

        for component_name in cls.COMPONENTS:
            logger = cls._create_component_logger(component_name)

            # Console handler for errors and critical
            if component_name in ['error', 'main']:
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setLevel(logging.ERROR)
                console_handler.setFormatter(simple_formatter)
                logger.addHandler(console_handler)

        main_logger = cls._loggers['main']
        main_logger.debug(
            f"SoulLink Sync logging initialized (log_dir={cls._log_dir}, debug={debug})"
        )

    @classmethod
    def _create_component_logger(cls, component: str) -> logging.Logger:
        """Create a component logger on-demand."""
        if component in cls._loggers:
            return cls._loggers[component]

        logger = logging.getLogger(f"soullink.{component}")
        component_config = cls.COMPONENTS.get(component, {'level': logging.INFO, 'file': f'{component}.log'})

        # Set level (DEBUG if debug mode, otherwise component default)
        level = logging.DEBUG if cls._debug else component_config['level']
        logger.setLevel(level)

        if cls._log_dir is not None:
            # Clear handlers from a previous initialization
            logger.handlers.clear()
            file_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / component_config['file'],
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter(cls.DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
            )
            logger.addHandler(file_handler)

        cls._loggers[component] = logger
        return logger

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name (store, replication, remote, etc.)
                      Can also be a module path like 'soullink_sync.store.replication'

        Returns:
            Logger instance for the component
        """
        if not cls._initialized:
            cls.initialize()

        # Handle module paths - extract component from __name__ format
        if component.startswith('soullink_sync.'):
            parts = component.split('.')
            if len(parts) >= 3:
                if parts[1] == 'domain' and parts[2] in ('sanitizer', 'roster'):
                    component = parts[2]
                elif parts[1] == 'domain':
                    component = 'progression'
                elif parts[1] == 'store' and parts[2] == 'document_store':
                    component = 'store'
                elif parts[1] == 'store':
                    component = 'replication'
                elif parts[1] in ['db', 'repositories']:
                    component = 'database'
                elif parts[1] == 'events':
                    component = 'websocket'
                else:
                    # Default to second level (soullink_sync.X.Y -> X)
                    component = parts[1]
            else:
                # soullink_sync.main -> main
                component = parts[-1]

        return cls._create_component_logger(component)

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

        exc_info = (type(exc), exc, exc.__traceback__)
        component_logger.error(
            f"Exception in {component}: {type(exc).__name__}: {exc}{context_str}", exc_info=exc_info
        )
        error_logger.error(f"[{component}] {type(exc).__name__}: {exc}{context_str}", exc_info=exc_info)


# Convenience functions
def get_logger(component: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return ComponentLogger.get_logger(component)


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for a module using its __name__.
    This automatically maps module paths to appropriate components.

    Example:
        logger = get_module_logger(__name__)  # Works from any module
    """
    return ComponentLogger.get_logger(module_name)


def log_exception(component: str, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with context."""
    ComponentLogger.log_exception(component, exc, context)
