# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Terminal output for CLI commands.

Colour-coded single-line messages. Colour is off when the stream is not
a terminal or NO_COLOR is set.
"""

import os
import sys
from typing import Callable, Optional, TextIO

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
BOLD = "\033[1m"
NC = "\033[0m"

RULE = "━" * 52


def color_enabled(stream: TextIO) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class Output:
    """Writes command output to a stream"""

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None):
        self.stream = stream or sys.stdout
        self.color = color_enabled(self.stream) if color is None else color

    def paint(self, text: str, code: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{NC}"

    def line(self, text: str = "") -> None:
        print(text, file=self.stream)

    def header(self, title: str) -> None:
        self.line()
        self.line(self.paint(RULE, BLUE))
        self.line(self.paint(title, BOLD))
        self.line(self.paint(RULE, BLUE))
        self.line()

    def section(self, title: str) -> None:
        self.line()
        self.line(self.paint(title, BOLD))

    def title(self, text: str) -> None:
        self.line(self.paint(text, BLUE))

    def success(self, text: str) -> None:
        self.line(f"{self.paint('✓', GREEN)} {text}")

    def failure(self, text: str) -> None:
        self.line(f"{self.paint('✗', RED)} {text}")

    def warning(self, text: str) -> None:
        self.line(f"{self.paint('⚠', YELLOW)} {text}")

    def info(self, text: str) -> None:
        self.line(f"{self.paint('ℹ', BLUE)} {text}")

    def error(self, text: str) -> None:
        """Single-line fatal diagnostic."""
        self.line(self.paint(f"Error: {text}", RED))


def confirm(prompt: str, input_fn: Callable[[str], str] = input) -> bool:
    """Ask a y/N question; anything but y/yes is a no."""
    try:
        reply = input_fn(f"{prompt} (y/N) ")
    except EOFError:
        return False
    return reply.strip().lower() in ("y", "yes")
