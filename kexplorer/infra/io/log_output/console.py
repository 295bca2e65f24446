"""Console logging helpers for kexplorer.

Colored, timestamped status lines plus block output for tool listings.
"""

from datetime import datetime

# Global verbose setting (can be modified at runtime)
_verbose_enabled: bool = False


def set_verbose(enabled: bool) -> None:
    """Enable or disable verbose output globally."""
    global _verbose_enabled
    _verbose_enabled = enabled


def truncate_text(text: str, max_length: int) -> str:
    """Truncate text to max_length, adding ellipsis if truncated.

    Respects global verbose setting. If verbose is enabled,
    returns the original text unchanged.
    """
    if _verbose_enabled:
        return text
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


class Colors:
    """ANSI color codes for terminal output (bright variants)."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    RED = "\033[91m"
    GRAY = "\033[90m"
    WHITE = "\033[97m"
    MUTED = "\033[90m"


def log(
    icon: str,
    message: str,
    color: str = Colors.RESET,
    dim: bool = False,
) -> None:
    """Print one timestamped status line."""
    style = Colors.MUTED if dim else ""
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(
        f"{Colors.GRAY}{timestamp}{Colors.RESET} {style}{color}{icon} {message}{Colors.RESET}"
    )


def log_verbose(icon: str, message: str, color: str = Colors.MUTED) -> None:
    """Log only when verbose output is enabled."""
    if _verbose_enabled:
        log(icon, message, color, dim=True)


def log_block(title: str, text: str, color: str = Colors.CYAN, max_lines: int = 40) -> None:
    """Print a titled block of tool output.

    In quiet mode only the first max_lines lines are shown, followed by a
    count of the lines omitted.
    """
    print(f"{color}{Colors.BOLD}── {title} ──{Colors.RESET}")
    lines = text.rstrip("\n").splitlines()
    if not _verbose_enabled and len(lines) > max_lines:
        hidden = len(lines) - max_lines
        lines = lines[:max_lines]
        lines.append(f"{Colors.MUTED}... {hidden} more line(s), use --verbose{Colors.RESET}")
    for line in lines:
        print(f"  {line}")
