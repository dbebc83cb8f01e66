"""
Error types shared by the engine and its callers.

ScanConfigError is raised before a scan starts and ScanIncompleteError after
one loses an outcome. ConnectError stays inside the probe and is folded
into a closed outcome.
"""

from typing import Optional


class ScanConfigError(ValueError):
    """Configuration rejected before any worker was launched."""


class ConnectError(Exception):
    def __init__(self, target: str, port: int, cause: Optional[OSError] = None):
        self.target = target
        self.port = port
        self.cause = cause
        super().__init__(f"connect to {target}:{port} failed: {cause}")


class ScanIncompleteError(RuntimeError):
    """Fewer outcomes were folded than ports were submitted."""
