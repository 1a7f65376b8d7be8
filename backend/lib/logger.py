"""
Backend Logging Utility

Console logging for the advisor API. Every line carries a timestamp, a level
and an icon for the area of the app it came from (chat, subjects, courses,
survey, storage). Payloads are passed as dicts and rendered as indented
``key: value`` lines under the message.
"""

import logging
import sys
from typing import Any, Dict, Optional

RESET = "\033[0m"
DIM = "\033[90m"

# level -> (ANSI color, fallback icon)
LEVEL_STYLES = {
    logging.DEBUG: ("\033[36m", "🔍"),
    logging.INFO: ("\033[32m", "ℹ️"),
    logging.WARNING: ("\033[33m", "⚠️"),
    logging.ERROR: ("\033[31m", "❌"),
    logging.CRITICAL: ("\033[35m", "🚨"),
}

# Keyed by the last component of the logger name
AREA_ICONS = {
    "main": "🌐",
    "chat": "💬",
    "subjects": "🔤",
    "courses": "📚",
    "survey": "📝",
    "course_advisor": "🤖",
    "prediction_client": "🔮",
    "session_store": "💾",
    "course_catalog": "📚",
}

NOISY_LOGGERS = ("asyncio", "httpx", "httpcore", "urllib3", "openai", "hpack")
MAX_VALUE_LENGTH = 100


class ConsoleFormatter(logging.Formatter):
    """``[HH:MM:SS.mmm] icon LEVEL logger | message``, colored on a TTY."""

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{RESET}" if self.use_colors else text

    def format(self, record: logging.LogRecord) -> str:
        color, level_icon = LEVEL_STYLES.get(record.levelno, ("", "•"))
        icon = AREA_ICONS.get(record.name.rsplit(".", 1)[-1], level_icon)
        stamp = f"[{self.formatTime(record, '%H:%M:%S')}.{int(record.msecs):03d}]"

        line = (
            f"{self._paint(stamp, DIM)} {icon} "
            f"{self._paint(f'{record.levelname:8s}', color)} {record.name} | {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _shorten(value: Any, limit: int = MAX_VALUE_LENGTH) -> Any:
    if isinstance(value, str) and len(value) > limit:
        return f"{value[:limit]}..."
    return value


def render_data(data: Dict[str, Any], indent: int = 2) -> str:
    """Indented ``key: value`` block; nested dicts recurse, long lists are summarized."""
    pad = " " * indent
    lines = []
    for key, value in data.items():
        if isinstance(value, dict):
            lines.append(f"{pad}{key}:")
            lines.append(render_data(value, indent + 2))
        elif isinstance(value, (list, tuple)) and len(value) > 5:
            head = ", ".join(str(_shorten(v, 40)) for v in value[:3])
            lines.append(f"{pad}{key}: [{head}, ... ({len(value)} items)]")
        else:
            lines.append(f"{pad}{key}: {_shorten(value)}")
    return "\n".join(lines)


class StructuredLogger:
    """Wraps a stdlib logger; each call takes an optional ``data`` dict."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    def _log(self, level: int, message: str, data: Optional[Dict[str, Any]] = None, exc_info=None):
        if data:
            message = f"{message}\n{render_data(data)}"
        self.logger.log(level, message, exc_info=exc_info)

    def debug(self, message: str, data: Optional[Dict[str, Any]] = None):
        self._log(logging.DEBUG, message, data)

    def info(self, message: str, data: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, message, data)

    def success(self, message: str, data: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, f"✅ {message}", data)

    def warning(self, message: str, data: Optional[Dict[str, Any]] = None):
        self._log(logging.WARNING, message, data)

    def error(self, message: str, error: Optional[BaseException] = None, data: Optional[Dict[str, Any]] = None):
        """Log an error; the exception and its traceback are attached when given."""
        if error is not None:
            message = f"{message} ({type(error).__name__}: {error})"
        self._log(logging.ERROR, message, data, exc_info=error)

    def section(self, title: str, data: Optional[Dict[str, Any]] = None):
        rule = "=" * 60
        self._log(logging.INFO, f"\n{rule}\n📋 {title.upper()}\n{rule}", data)

    def request(self, method: str, path: str, session_id: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        payload = {"session_id": _shorten(session_id, 24)} if session_id else {}
        payload.update(data or {})
        self._log(logging.INFO, f"📥 {method} {path}", payload)

    def response(self, status: int, path: str, duration: Optional[float] = None, data: Optional[Dict[str, Any]] = None):
        payload = {"duration_ms": round(duration * 1000, 2)} if duration is not None else {}
        payload.update(data or {})
        self._log(logging.INFO, f"📤 {status} {path}", payload)

    def chat_turn(self, session_id: str, branch: Optional[str], state_before: str, state_after: str, is_error: bool):
        """One line per chat turn: branch taken and the state transition (or lack of it)."""
        arrow = "✗" if is_error else "→"
        self._log(
            logging.WARNING if is_error else logging.INFO,
            f"💬 {session_id[:24]} [{branch or '-'}] {state_before} {arrow} {state_after}"
        )


def setup_logging(level: int = logging.INFO, use_colors: bool = True) -> logging.Logger:
    """Route all logging to stdout through ConsoleFormatter and quiet the HTTP client loggers."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ConsoleFormatter(use_colors=use_colors))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLogger()


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)
