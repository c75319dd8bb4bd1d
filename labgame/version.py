"""
Version helpers for the labgame package.

Resolution order:
1) installed distribution metadata (``importlib.metadata``),
2) ``git describe`` of the checkout, normalized to PEP 440,
3) the static ``BASE_VERSION`` with a local ``+unknown`` marker.
"""
from __future__ import annotations

import re
import subprocess
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from pathlib import Path
from typing import Optional

# Bump when cutting a source release.
BASE_VERSION = "0.3.0"

_DIST_NAME = "labgame"

_DESCRIBE_RE = re.compile(r"^v(?P<tag>\d+\.\d+\.\d+)-(?P<distance>\d+)-g(?P<commit>[0-9a-f]+)(?P<dirty>-dirty)?$")


def _describe() -> Optional[str]:
    root = Path(__file__).resolve().parent.parent
    if not (root / ".git").exists():
        return None
    try:
        out = subprocess.check_output(
            ["git", "-C", str(root), "describe", "--tags", "--long", "--dirty", "--match", "v*"],
            stderr=subprocess.DEVNULL,
            text=True,
        ).strip()
    except (OSError, subprocess.CalledProcessError):
        return None
    m = _DESCRIBE_RE.match(out)
    if not m:
        return None
    tag, distance = m.group("tag"), int(m.group("distance"))
    if distance == 0 and not m.group("dirty"):
        return tag
    local = "+g" + m.group("commit") + (".dirty" if m.group("dirty") else "")
    return f"{tag}.post{distance}{local}"


@lru_cache(maxsize=1)
def get_version() -> str:
    try:
        return _pkg_version(_DIST_NAME)
    except PackageNotFoundError:
        pass
    return _describe() or f"{BASE_VERSION}+unknown"


__version__ = get_version()
__all__ = ["__version__", "get_version", "BASE_VERSION"]
