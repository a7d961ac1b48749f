"""
Error taxonomy for template validation and editing.

Every error is a ``ValueError`` so that callers that only care about
"bad input" can keep catching ``ValueError``. Subclasses let the editor
tell a malformed CURIE from an illegal header edit.

Two families:
- grammar errors raised by a single cell check (recoverable, the cell is
  left unchanged);
- structural errors (``HeaderError``, ``TemplateError``) raised when the
  matrix itself cannot be interpreted.

``ValidationFailure`` carries a whole ``ValidationErrors`` collection when a
load or QC pass found several defects at once.
"""

from __future__ import annotations

import typing

if typing.TYPE_CHECKING:
    from .validation import ValidationErrors


class PhetoolsError(ValueError):
    """Base class of every template error."""


# ------------------
# Structural errors
# ------------------


class HeaderError(PhetoolsError):
    """The two header rows do not describe a valid template."""


class TemplateError(PhetoolsError):
    """The matrix (row count, row lengths, column identity) is inconsistent."""


class EditError(PhetoolsError):
    """An edit was requested on a cell or row that may not be edited."""


# --------------
# Cell grammars
# --------------


class CurieError(PhetoolsError):
    pass


class PmidError(CurieError):
    pass


class DiseaseIdError(CurieError):
    pass


class HgncError(CurieError):
    pass


class TermIdError(CurieError):
    pass


class HgvsError(PhetoolsError):
    pass


class TranscriptError(PhetoolsError):
    pass


class WhiteSpaceError(PhetoolsError):
    pass


class ForbiddenLabelChar(PhetoolsError):
    pass


class MalformedLabel(PhetoolsError):
    pass


class AgeParseError(PhetoolsError):
    pass


class DeceasedError(PhetoolsError):
    pass


class SexFieldError(PhetoolsError):
    pass


class SeparatorError(PhetoolsError):
    pass


class UnrecognizedValue(PhetoolsError):
    pass


class EmptyField(PhetoolsError):
    pass


class EmptyLabel(EmptyField):
    pass


# -----------------
# Ontology checks
# -----------------


class HpIdNotFound(PhetoolsError):
    pass


class ObsoleteTermId(PhetoolsError):
    def __init__(self, obsolete: str, replacement: str):
        super().__init__(f"Obsolete term id {obsolete}: replace with {replacement}")
        self.obsolete = obsolete
        self.replacement = replacement


class WrongLabel(PhetoolsError):
    def __init__(self, term_id: str, actual: str, expected: str):
        super().__init__(f"{term_id}: expected label '{expected}' but got '{actual}'")
        self.term_id = term_id
        self.actual = actual
        self.expected = expected


# ----------
# Variants
# ----------


class VariantValidationError(PhetoolsError):
    """The variant validator rejected a variant, or could not be reached."""


# ----------------------
# Accumulated failures
# ----------------------


class ValidationFailure(PhetoolsError):
    """Raised when a load or QC pass collected one or more errors."""

    def __init__(self, errors: "ValidationErrors"):
        messages = errors.messages()
        summary = f"{len(messages)} validation error(s)"
        if messages:
            summary += f": {messages[0]}"
        super().__init__(summary)
        self.errors = errors
