"""Typed conversion failures shared by the router, service, CLI and API."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager


class ConversionError(RuntimeError):
    code = "CONVERSION_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class UnsupportedConversion(ConversionError):
    """The (category, target) pair is not in the compatibility table."""

    code = "UNSUPPORTED_CONVERSION"


class UnsupportedTarget(ConversionError):
    """The source format is recognised but cannot produce the requested target."""

    code = "UNSUPPORTED_TARGET"


class DecodeError(ConversionError):
    code = "DECODE_ERROR"


class EncodeError(ConversionError):
    code = "ENCODE_ERROR"


class ExternalLibraryError(ConversionError):
    code = "EXTERNAL_LIBRARY_ERROR"

    def __init__(self, library: str, stage: str, cause: BaseException) -> None:
        super().__init__(f"{library} failed during {stage}: {cause}")
        self.library = library
        self.stage = stage


@contextmanager
def library_errors(
    library: str,
    stage: str,
    *,
    malformed: tuple[type[BaseException], ...] = (),
) -> Iterator[None]:
    """Translate exceptions raised inside a third-party codec call.

    Exceptions listed in *malformed* mean the input bytes are bad and become
    :class:`DecodeError`; anything else is wrapped in
    :class:`ExternalLibraryError`. Our own errors pass through untouched.
    """

    try:
        yield
    except ConversionError:
        raise
    except malformed as exc:
        raise DecodeError(f"{library} could not read the input during {stage}: {exc}") from exc
    except Exception as exc:
        raise ExternalLibraryError(library, stage, exc) from exc


__all__ = [
    "ConversionError",
    "DecodeError",
    "EncodeError",
    "ExternalLibraryError",
    "UnsupportedConversion",
    "UnsupportedTarget",
    "library_errors",
]
