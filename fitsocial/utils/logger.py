import json
import sys
from datetime import datetime
from enum import Enum
from typing import Optional


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


# Numeric ordering used for the LOG_LEVEL threshold
LEVEL_ORDER = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.SUCCESS: 25,
    LogLevel.WARNING: 30,
    LogLevel.ERROR: 40,
}


class Colors:
    """ANSI color codes for console output"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_CYAN = '\033[96m'
    WHITE = '\033[37m'


class FitSocialLogger:
    """Console logger for the FitSocial backend with colorized, consistently formatted lines"""

    def __init__(self, service_name: str = "FITSOCIAL", enable_colors: Optional[bool] = None,
                 min_level: Optional[str] = None, stream=None):
        self.service_name = service_name.upper()
        self.stream = stream or sys.stdout
        if enable_colors is None:
            enable_colors = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.enable_colors = enable_colors
        self._min_level = min_level

        self.level_colors = {
            LogLevel.DEBUG: Colors.BRIGHT_CYAN,
            LogLevel.INFO: Colors.BRIGHT_BLUE,
            LogLevel.SUCCESS: Colors.BRIGHT_GREEN,
            LogLevel.WARNING: Colors.BRIGHT_YELLOW,
            LogLevel.ERROR: Colors.BRIGHT_RED,
        }

    @property
    def min_level(self) -> LogLevel:
        """Threshold below which messages are dropped; read lazily so tests can change settings."""
        level_name = self._min_level
        if level_name is None:
            from fitsocial.core.config import settings
            level_name = settings.LOG_LEVEL
        try:
            return LogLevel(level_name.upper())
        except ValueError:
            return LogLevel.INFO

    def _get_timestamp(self) -> str:
        """Get formatted timestamp"""
        return datetime.now().strftime("%H:%M:%S.%f")[:-3]

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled"""
        if not self.enable_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _format_message(self, level: LogLevel, message: str, context: Optional[str] = None) -> str:
        """Format: [TIMESTAMP] [SERVICE/CONTEXT] [LEVEL] message"""
        level_color = self.level_colors.get(level, Colors.WHITE)
        level_text = self._colorize(f"[{level.value}]", level_color + Colors.BOLD)

        service_context = self.service_name
        if context:
            service_context += f"/{context.upper()}"

        service_text = self._colorize(f"[{service_context}]", Colors.BRIGHT_BLACK)
        timestamp_text = self._colorize(f"[{self._get_timestamp()}]", Colors.DIM)

        return f"{timestamp_text} {service_text} {level_text} {message}"

    @staticmethod
    def _format_extras(extras: dict) -> str:
        parts = []
        for key, value in extras.items():
            if isinstance(value, (dict, list)):
                value_str = json.dumps(value, default=str, separators=(',', ':'))
                if len(value_str) > 100:
                    value_str = value_str[:100] + "..."
            else:
                value_str = str(value)
            parts.append(f"{key}={value_str}")
        return ", ".join(parts)

    def _log(self, level: LogLevel, message: str, context: Optional[str] = None, **kwargs):
        if LEVEL_ORDER[level] < LEVEL_ORDER[self.min_level]:
            return

        formatted_message = self._format_message(level, message, context)
        if kwargs:
            formatted_message += self._colorize(f" | {self._format_extras(kwargs)}", Colors.DIM)

        print(formatted_message, file=self.stream)
        self.stream.flush()

    def debug(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.INFO, message, context, **kwargs)

    def success(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.SUCCESS, message, context, **kwargs)

    def warning(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.ERROR, message, context, **kwargs)


# Global logger instances for different services
auth_logger = FitSocialLogger("AUTH")
user_logger = FitSocialLogger("USERS")
workout_logger = FitSocialLogger("WORKOUT")
feed_logger = FitSocialLogger("FEED")
program_logger = FitSocialLogger("PROGRAM")
analysis_logger = FitSocialLogger("ANALYSIS")
db_logger = FitSocialLogger("DATABASE")
api_logger = FitSocialLogger("API")
