"""Sentinel for "no value could be resolved".

Resolution must tell apart a value that is explicitly ``None`` (a null in
sample data) from a value that does not exist at all (dead handle, missing
node, unconnected input). Compare with ``is``, never ``==``.
"""

from typing import Final


class MissingSentinel:
    """Singleton marker type; use the MISSING instance."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<MISSING>"

    def __bool__(self) -> bool:
        return False


MISSING: Final[MissingSentinel] = MissingSentinel()
