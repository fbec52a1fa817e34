"""
Safe parser for .epicflow/project.env.

Reads KEY=value lines without ever handing them to a shell, so values that
look like command substitution are rejected rather than expanded.
"""

import re
from pathlib import Path

# Shell constructs that have no business in a config value
FORBIDDEN = re.compile(r'`|\$\(|\$\{|;|&&|\|')

KEY_RE = re.compile(r'^[A-Z][A-Z0-9_]*$')


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_env(text: str) -> dict[str, str]:
    """
    Parse env-file content into a dict.

    Blank lines and '#' comments are skipped, a leading "export " is tolerated.

    Raises:
        ValueError: on a line without '=', a malformed key, or a forbidden pattern
    """
    env: dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()

        key, sep, value = line.partition('=')
        if not sep:
            raise ValueError(f"Line {lineno}: expected KEY=value")
        key = key.strip()
        if not KEY_RE.match(key):
            raise ValueError(f"Line {lineno}: invalid key '{key}'")

        value = _unquote(value.strip())
        if FORBIDDEN.search(value):
            raise ValueError(f"Line {lineno}: forbidden shell syntax in value of {key}")
        env[key] = value
    return env


def load_env(path: Path) -> dict[str, str]:
    """Load and parse an env file.

    Raises:
        FileNotFoundError: if the file doesn't exist
        ValueError: if syntax is invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Env file not found: {path}")
    return parse_env(path.read_text())
