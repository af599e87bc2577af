"""Support code for the rereso data model.

Value types, the codec registry, format dispatch, and string helpers. Modules
in this package do not depend on the artifact definitions.
"""

__all__ = []
