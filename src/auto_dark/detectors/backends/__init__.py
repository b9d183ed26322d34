"""Built-in detector backends.

All backends are imported on every platform: they only touch OS APIs when
queried, and a forced method must resolve to a detector anywhere.
"""

from __future__ import annotations

from .linux import PortalDetector
from .macos import AppleScriptDetector, OsascriptDetector
from .windows import RegistryDetector

__all__ = ["AppleScriptDetector", "OsascriptDetector", "PortalDetector", "RegistryDetector"]
