"""
colors - ANSI helpers for terminal output.
"""

import sys

# auto: color only when stdout is a terminal
_mode = "auto"


def set_color_mode(mode: str):
    global _mode
    _mode = mode


def use_color() -> bool:
    if _mode == "always":
        return True
    if _mode == "never":
        return False
    return sys.stdout.isatty()


def _c(code: str, text: str) -> str:
    if not use_color():
        return text
    return f"\033[{code}m{text}\033[0m"

def yellow(t):  return _c("33", t)
def cyan(t):    return _c("36", t)
def bold(t):    return _c("1",  t)
def dim(t):     return _c("2",  t)
