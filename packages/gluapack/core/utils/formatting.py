import re

_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


def format_file_size(size: int) -> str:
    """
    Render a byte count with a binary unit suffix, e.g. ``1.50 KiB``.
    """
    value = float(size)
    for unit in _UNITS:
        # Bytes are always whole numbers
        if unit == "B" and value < 1024:
            return f"{size} B"
        if value < 1024 or unit == _UNITS[-1]:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} {_UNITS[-1]}"


_LUA_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r"}
_LUA_ESCAPE_RE = re.compile(r'[\\"\x00-\x1f\x7f]')


def _lua_escape(match: re.Match[str]) -> str:
    char = match.group()
    return _LUA_ESCAPES.get(char) or f"\\{ord(char):03d}"


def lua_string(value: str) -> str:
    """Quote a string as a double-quoted Lua literal.

    Quotes, backslashes and line breaks get short escapes. Remaining control
    characters get three-digit decimal escapes, so a following digit can
    never extend them.
    """
    return '"' + _LUA_ESCAPE_RE.sub(_lua_escape, value) + '"'
