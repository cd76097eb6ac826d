"""Exception hierarchy for ScholarCite.

Callers tell failure kinds apart by the intermediate base classes:
user-input problems, collaborator failures and document import/export
failures. History corruption is a programming error and deliberately sits
outside the hierarchy.
"""


class ScholarCiteError(Exception):
    """Base exception for recoverable ScholarCite errors."""

    pass


# User input


class UserInputError(ScholarCiteError):
    """Raised when an action is rejected because of what the user supplied."""

    pass


class NoSelectionError(UserInputError):
    """Raised when a citation action is started without a text selection."""

    def __init__(
        self, message: str = "Please select the text where you want to insert the citation first."
    ):
        super().__init__(message)


class InvalidSelectionError(UserInputError):
    """Raised when a selection offset falls outside the document text."""

    pass


class ManualEntryError(UserInputError):
    """Raised when a manually entered source has missing or malformed fields."""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class DuplicateSourceError(UserInputError):
    """Raised when a source with the same URL or title is already saved."""

    def __init__(self, message: str = "Source already in library."):
        super().__init__(message)


class UnknownStyleError(UserInputError):
    """Raised when a citation style name is not one of the supported styles."""

    pass


# External collaborators


class CollaboratorError(ScholarCiteError):
    """Base exception for failures of the search and formatting services."""

    pass


class CollaboratorNotConfiguredError(CollaboratorError):
    """Raised when a collaborator is missing its credentials."""

    pass


class SourceSearchError(CollaboratorError):
    """Raised when the source search call fails."""

    pass


class CitationFormatError(CollaboratorError):
    """Raised when the citation formatting call fails or returns unusable content."""

    pass


# Documents


class DocumentError(ScholarCiteError):
    """Base exception for document import and export failures."""

    pass


class DocumentImportError(DocumentError):
    """Raised when a document cannot be turned into plain text."""

    pass


class UnsupportedFileTypeError(DocumentImportError):
    """Raised when the file extension is not one of the recognized formats."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file type: {extension or '(none)'}")


class DocumentParseError(DocumentImportError):
    """Raised when a recognized document is corrupt or cannot be read."""

    pass


class ExportError(DocumentError):
    """Raised when rendering the document to an export format fails."""

    pass


# Programming errors


class HistoryInvariantError(RuntimeError):
    """Raised when the undo/redo log is in an impossible state."""

    pass
