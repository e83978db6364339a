"""Bridged token deployment provisioner.

Deploys and links the token library, the upgradeable token, its minting
controller and the bridge, initializes them, hands control to governance and
records the resulting addresses so later runs resume instead of repeating.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
