"""Exception hierarchy for catalog-dump.

Parse errors (``InvalidIdentifierError``, ``InvalidACLError``) are raised
while turning raw catalog text into records and can be handled by the
caller.  Structural errors (``MissingReferencedObjectError``,
``UnsupportedVariantError``, ``DependencyOrderError``) mean the facts handed
to a renderer are incomplete, and abort the render before any output is
written.
"""


class CatalogDumpError(Exception):
    """Base class for all catalog-dump errors."""

    pass


class InvalidIdentifierError(CatalogDumpError, ValueError):
    """Raised when a bare or quoted identifier cannot be parsed."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"{identifier} is not a valid identifier")


class InvalidACLError(CatalogDumpError, ValueError):
    """Raised when an ACL entry such as ``role=arw/owner`` is malformed."""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid ACL entry {raw!r}: {reason}")


class MissingReferencedObjectError(CatalogDumpError, LookupError):
    """Raised when a relation has no table definition to render from."""

    def __init__(self, oid: int, name: str = ""):
        self.oid = oid
        self.name = name
        label = f"{name} (oid {oid})" if name else f"oid {oid}"
        super().__init__(f"No table definition found for relation {label}")


class UnsupportedVariantError(CatalogDumpError, TypeError):
    """Raised when an object of an unknown kind reaches a renderer."""

    pass


class DependencyOrderError(CatalogDumpError):
    """Raised when an object is placed before something it depends on."""

    pass
