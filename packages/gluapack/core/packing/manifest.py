"""Client-side cache manifest: per-realm lists of chunk content hashes."""

from __future__ import annotations

import re
from collections.abc import Sequence

from gluapack.core.errors import FormatError
from gluapack.core.models import Realm

# Key order in the rendered table
MANIFEST_REALMS = (Realm.SHARED, Realm.CLIENT)

_MANIFEST_RE = re.compile(r"^return\{(.*)\}$", re.DOTALL)
_ENTRY_RE = re.compile(r'(sh|cl)=\{((?:"[0-9a-f]+",?)*)\},?')


def render_manifest(hashes: dict[Realm, Sequence[bytes]]) -> str | None:
    """Render the manifest Lua table.

    Realms without chunks are omitted. Returns None when no cacheable chunk
    exists, in which case no manifest is written.

    Example:
        >>> render_manifest({Realm.CLIENT: [b"\\x01" * 20]})
        'return{cl={"0101010101010101010101010101010101010101"}}'
    """
    parts = []
    for realm in MANIFEST_REALMS:
        realm_hashes = hashes.get(realm) or ()
        if realm_hashes:
            joined = ",".join(f'"{h.hex()}"' for h in realm_hashes)
            parts.append(f"{realm.value}={{{joined}}}")
    if not parts:
        return None
    return "return{" + ",".join(parts) + "}"


def parse_manifest(text: str) -> dict[Realm, list[str]]:
    """Parse a rendered manifest back into per-realm hex digests.

    Raises:
        FormatError: If text is not a manifest table
    """
    match = _MANIFEST_RE.match(text.strip())
    if not match:
        raise FormatError("Manifest is not a returned table")

    body = match.group(1)
    result: dict[Realm, list[str]] = {}
    pos = 0
    while pos < len(body):
        entry = _ENTRY_RE.match(body, pos)
        if not entry:
            raise FormatError(f"Malformed manifest entry at offset {pos}")
        result[Realm(entry.group(1))] = re.findall(r'"([0-9a-f]+)"', entry.group(2))
        pos = entry.end()
    return result
