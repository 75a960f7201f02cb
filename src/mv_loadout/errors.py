"""Exception types raised at the edges of the loadout engine.

Derivation itself never raises for bad data; these are for catalog
loading, rejected edits, and unreadable export documents.
"""


class LoadoutError(Exception):
    """Base class for loadout errors."""


class CatalogLoadError(LoadoutError):
    """A reference data file is missing, unreadable, or malformed."""


class UnknownEntityError(LoadoutError, ValueError):
    """An id does not exist in the reference catalog or current loadout."""


class IllegalSelectionError(LoadoutError, ValueError):
    """A requested edit would put the loadout in an illegal state."""


class DocumentParseError(LoadoutError, ValueError):
    """Export document text could not be located or decoded."""
