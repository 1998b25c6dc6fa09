"""
Color utilities for the trill memory debugger

Provides ANSI color codes for terminal output and the per-slot styles used
by the memory grid.
"""

import os
import sys

# Check if colors are supported
SUPPORTS_COLOR = (
    hasattr(sys.stdout, 'isatty') and sys.stdout.isatty() and
    os.environ.get('TERM') != 'dumb' and
    not os.environ.get('NO_COLOR')
)


class Colors:
    """ANSI color codes for terminal output."""

    # Basic colors
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'

    # Bright colors
    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_WHITE = '\033[97m'

    # Styles
    BOLD = '\033[1m'
    DIM = '\033[2m'
    ITALIC = '\033[3m'

    # Reset
    RESET = '\033[0m'

    _saved = {}

    @classmethod
    def disable(cls):
        """Disable all colors."""
        for attr in dir(cls):
            if not attr.startswith('_') and attr.isupper():
                cls._saved.setdefault(attr, getattr(cls, attr))
                setattr(cls, attr, '')

    @classmethod
    def enable(cls):
        """Re-enable colors."""
        for attr, code in cls._saved.items():
            setattr(cls, attr, code)
        cls._saved.clear()


def set_color_enabled(enabled: bool):
    """Switch colors on or off for the whole process."""
    if enabled:
        Colors.enable()
    else:
        Colors.disable()


# Disable colors if not supported
if not SUPPORTS_COLOR:
    Colors.disable()


def cyan(text: str) -> str:
    """Return text in cyan."""
    return f"{Colors.CYAN}{text}{Colors.RESET}"

def bold(text: str) -> str:
    """Return text in bold."""
    return f"{Colors.BOLD}{text}{Colors.RESET}"

def dim(text: str) -> str:
    """Return text dimmed."""
    return f"{Colors.DIM}{text}{Colors.RESET}"


# Semantic color functions for debugging
def error(text: str) -> str:
    """Format error text."""
    return f"{Colors.BRIGHT_RED}{text}{Colors.RESET}"

def success(text: str) -> str:
    """Format success text."""
    return f"{Colors.BRIGHT_GREEN}{text}{Colors.RESET}"

def warning(text: str) -> str:
    """Format warning text."""
    return f"{Colors.BRIGHT_YELLOW}{text}{Colors.RESET}"

def info(text: str) -> str:
    """Format info text."""
    return f"{Colors.BRIGHT_CYAN}{text}{Colors.RESET}"

def highlight(text: str) -> str:
    """Highlight important text."""
    return f"{Colors.BOLD}{Colors.BRIGHT_WHITE}{text}{Colors.RESET}"

def opcode(text: str) -> str:
    """Format EVM opcode."""
    return f"{Colors.BRIGHT_BLUE}{text}{Colors.RESET}"

def address(text: str) -> str:
    """Format Ethereum address."""
    return f"{Colors.BRIGHT_MAGENTA}{text}{Colors.RESET}"

def number(text: str) -> str:
    """Format numbers."""
    return f"{Colors.BRIGHT_YELLOW}{text}{Colors.RESET}"

def pc_value(pc: int) -> str:
    """Format program counter."""
    return f"{Colors.BRIGHT_YELLOW}{pc:4d}{Colors.RESET}"

def gas_value(gas: int) -> str:
    """Format gas value."""
    return f"{Colors.BRIGHT_GREEN}{gas:7d}{Colors.RESET}"


# Memory grid
SLOT_GLYPH = "■"

def slot_color(status_name: str) -> str:
    """Return the ANSI code used for a slot status name."""
    return {
        "EMPTY": Colors.BRIGHT_BLACK,
        "ACTIVE": Colors.GREEN,
        "READING": Colors.BLUE,
        "WRITING": Colors.RED,
        "UNREAD": Colors.YELLOW,
    }.get(status_name, "")

def slot_cell(status_name: str) -> str:
    """Format one memory slot cell. INIT slots are drawn as blanks."""
    if status_name == "INIT":
        return " "
    return f"{slot_color(status_name)}{SLOT_GLYPH}{Colors.RESET}"

def read_series(text: str) -> str:
    """Format the read-activity series."""
    return f"{Colors.BLUE}{text}{Colors.RESET}"

def write_series(text: str) -> str:
    """Format the write-activity series."""
    return f"{Colors.RED}{text}{Colors.RESET}"
