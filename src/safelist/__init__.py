"""A list that never stores None and closes gaps left by removals.

See README.md for complete documentation and usage examples.
"""

from safelist.safelist import DEFAULT_CAPACITY, safelist

__all__ = ["DEFAULT_CAPACITY", "safelist"]
