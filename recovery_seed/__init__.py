"""Recovery system seed builder.

Core design goals:
- Offline, self-contained seeds
- Shared asserted snaps, private unasserted ones
- Every asserted snap bound to its assertions
- Failures report exactly what was written
"""

from .create import create_system
from .pipeline import BuildResult

__all__ = ["create_system", "BuildResult"]
