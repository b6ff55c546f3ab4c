"""
Proxy List Support

Reads a newline-delimited proxy list and picks one entry per task.

Accepted line formats:
    host:port                     -> http://host:port
    scheme:host:port              -> scheme://host:port
    scheme:host:port:user:pass    -> scheme://host:port with credentials

A missing file, an empty file, or a malformed line all mean "no proxy"
for that task; none of them is an error.
"""

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import aiofiles
import aiofiles.os

from utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProxySettings:
    """Proxy configuration for one browser session."""
    server: str
    username: Optional[str] = None
    password: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        """Shape expected by the browser engine's new_session()."""
        data = {"server": self.server}
        if self.username is not None:
            data["username"] = self.username
        if self.password is not None:
            data["password"] = self.password
        return data


def parse_proxy(line: str) -> Optional[ProxySettings]:
    """
    Parse one proxy list entry.

    Returns:
        ProxySettings, or None when the line does not match a known format.
    """
    parts = line.strip().split(":")
    if any(not part for part in parts):
        return None

    if len(parts) == 2:
        host, port = parts
        return ProxySettings(server=f"http://{host}:{port}")
    if len(parts) == 3:
        scheme, host, port = parts
        return ProxySettings(server=f"{scheme}://{host}:{port}")
    if len(parts) == 5:
        scheme, host, port, username, password = parts
        return ProxySettings(
            server=f"{scheme}://{host}:{port}",
            username=username,
            password=password,
        )
    return None


class ProxyPool:
    """Random proxy picker backed by a list file that is re-read per task."""

    def __init__(self, path: Union[str, Path], rng: Optional[random.Random] = None):
        self.path = Path(path)
        self._rng = rng or random.Random()

    async def load(self) -> List[str]:
        """Return the non-blank lines of the list, or [] if it is missing."""
        if not await aiofiles.os.path.exists(self.path):
            return []
        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            content = await f.read()
        return [line.strip() for line in content.splitlines() if line.strip()]

    async def choose(self) -> Optional[ProxySettings]:
        """Pick one entry uniformly at random and parse it."""
        try:
            lines = await self.load()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read proxy list {self.path}: {e}")
            return None

        if not lines:
            return None

        line = self._rng.choice(lines)
        proxy = parse_proxy(line)
        if proxy is None:
            logger.debug(f"Ignoring malformed proxy entry: {line!r}")
        return proxy
