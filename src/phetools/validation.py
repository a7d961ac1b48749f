"""
Accumulating validation results.

Single-cell checks raise a typed ``PhetoolsError`` and stop. Loading a
matrix or running QC over a whole template must not stop at the first bad
cell, so those passes collect every error into a ``ValidationErrors`` and
decide success or failure once, through ``has_error()``.

Typical use::

    verrs = ValidationErrors()
    for value in cells:
        with verrs.capture():
            duplet.qc_cell(value)
    verrs.ok()   # raises ValidationFailure if anything was collected
"""

from __future__ import annotations

import contextlib
import typing

from stairval.notepad import Notepad

from .errors import PhetoolsError, TemplateError, ValidationFailure


class ValidationErrors:
    """Ordered, append-only collection of typed validation errors."""

    def __init__(self, errors: typing.Optional[typing.Iterable[PhetoolsError]] = None):
        self._errors: list[PhetoolsError] = list(errors) if errors else []

    def push(self, error: PhetoolsError) -> None:
        if isinstance(error, ValidationFailure):
            self.extend(error.errors)
        else:
            self._errors.append(error)

    def push_str(self, message: str) -> None:
        self._errors.append(TemplateError(message))

    def extend(self, other: "ValidationErrors") -> None:
        self._errors.extend(other.errors())

    @contextlib.contextmanager
    def capture(self):
        """Record a ``PhetoolsError`` raised inside the block instead of propagating it."""
        try:
            yield
        except PhetoolsError as e:
            self.push(e)

    def check(self, func: typing.Callable[..., typing.Any], *args, **kwargs) -> typing.Any:
        """
        Call ``func`` and record its ``PhetoolsError``, if any.

        Returns the function's result, or ``None`` if it raised.
        """
        try:
            return func(*args, **kwargs)
        except PhetoolsError as e:
            self.push(e)
            return None

    def has_error(self) -> bool:
        return len(self._errors) > 0

    def errors(self) -> list[PhetoolsError]:
        return list(self._errors)

    def messages(self) -> list[str]:
        return [str(e) for e in self._errors]

    def ok(self) -> None:
        """Raise ``ValidationFailure`` carrying this collection if it holds any error."""
        if self.has_error():
            raise ValidationFailure(self)

    def to_notepad(self, notepad: Notepad) -> None:
        for e in self._errors:
            notepad.add_error(str(e))

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> typing.Iterator[PhetoolsError]:
        return iter(self._errors)

    def __repr__(self) -> str:
        return f"ValidationErrors({self.messages()!r})"
