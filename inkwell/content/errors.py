"""Build-time error taxonomy.

Every error carries the identifier of the document it was found in (when
one is known) so the build can report all problems in one pass.
"""

from __future__ import annotations


class BuildError(Exception):
    """Base class for all fail-fast build errors."""

    def __init__(self, message: str, document_id: str | None = None) -> None:
        self.document_id = document_id
        self.message = message
        prefix = f"{document_id}: " if document_id else ""
        super().__init__(f"{prefix}{message}")


class UnreadableSource(BuildError):
    """The underlying file or directory could not be read."""

    def __init__(self, path: str, cause: Exception | None = None, document_id: str | None = None) -> None:
        self.path = path
        detail = f": {cause}" if cause else ""
        super().__init__(f"cannot read {path}{detail}", document_id)
        if cause is not None:
            self.__cause__ = cause


class MalformedDocument(BuildError):
    """The header block is missing, unterminated, or unparseable."""

    def __init__(self, reason: str, document_id: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"malformed document: {reason}", document_id)


class InvalidFieldType(MalformedDocument):
    """A header field is present but has the wrong type."""

    def __init__(self, field: str, expected: str, document_id: str | None = None) -> None:
        self.field = field
        self.expected = expected
        super().__init__(f"field {field!r} should be {expected}", document_id)


class MissingRequiredField(BuildError):
    def __init__(self, field: str, document_id: str | None = None) -> None:
        self.field = field
        super().__init__(f"missing required field: {field}", document_id)


class InvalidDateFormat(BuildError):
    def __init__(self, value: object, document_id: str | None = None, field: str = "date") -> None:
        self.value = value
        self.field = field
        super().__init__(f"field {field!r} is not a calendar date: {value!r}", document_id)


class DanglingReference(BuildError):
    """A link label or short-link target with nothing to point at."""

    def __init__(self, label: str, document_id: str | None = None, reason: str = "undefined label") -> None:
        self.label = label
        self.reason = reason
        super().__init__(f"dangling reference [{label}] ({reason})", document_id)


class ConflictingDefinition(BuildError):
    """The same label is defined twice in one scope with different targets."""

    def __init__(self, label: str, document_id: str | None = None, targets: tuple[str, ...] = ()) -> None:
        self.label = label
        self.targets = targets
        shown = ", ".join(targets)
        super().__init__(f"conflicting definitions for [{label}]: {shown}", document_id)


class BuildFailed(Exception):
    """Raised once, after every stage that can run, with all collected errors."""

    def __init__(self, errors: list[BuildError]) -> None:
        self.errors = list(errors)
        noun = "error" if len(self.errors) == 1 else "errors"
        lines = [f"build failed with {len(self.errors)} {noun}"]
        lines.extend(f"  - {e}" for e in self.errors)
        super().__init__("\n".join(lines))

    def of_type(self, kind: type[BuildError]) -> list[BuildError]:
        return [e for e in self.errors if isinstance(e, kind)]
