from __future__ import annotations


class PseudoAlphaError(RuntimeError):
    """Base class for pipeline and batch failures."""


class InvalidImage(PseudoAlphaError, ValueError):
    """Raised for zero-area or malformed raster buffers."""


class LoadTimeout(PseudoAlphaError, TimeoutError):
    """Raised when image acquisition exceeds its deadline."""


class LoadFailure(PseudoAlphaError):
    """Raised when the host loader could not decode or fetch an image."""


class DependencyMissing(PseudoAlphaError):
    """Raised when a required capability (e.g. the image loader) is not wired up."""
