# -*- coding: utf-8 -*-
"""
volreg Exception Hierarchy - Domain-specific exceptions for volume registration.

Provides a small exception hierarchy that lets callers catch registration
errors distinctly from Python built-in exceptions. All volreg exceptions
subclass both ``VolregError`` and the closest built-in exception, so code
that already catches ``ValueError`` or ``RuntimeError`` keeps working.

Each step of the registration pipeline raises its own class, so any failure
is attributable to exactly one step.

Author
------
Steven Siebert

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""


class VolregError(Exception):
    """Base exception for all volreg errors."""


class ValidationError(VolregError, ValueError):
    """Invalid input data, parameters, or configuration.

    Raised for malformed coordinate matrices (shape or dtype), out-of-range
    thresholds, invalid unit vectors, and other argument failures.
    """


class UnsupportedTransformError(VolregError, NotImplementedError):
    """A transform variant has no handler for the requested operation."""


class NoFeaturesError(VolregError, RuntimeError):
    """Registration was requested while one side has no descriptors.

    Parameters
    ----------
    side : str
        ``'source'`` or ``'reference'``.
    """

    def __init__(self, side: str) -> None:
        super().__init__(
            f"No {side} descriptors are available. Call set_{side}() "
            f"with an image that produces features."
        )
        self.side = side


class NoMatchesError(VolregError, LookupError):
    """Matches were requested before any registration has run."""


class InitializationError(VolregError, RuntimeError):
    """An owned sub-object of a registration session could not be built."""


class ProcessorError(VolregError, RuntimeError):
    """Collaborator failure during a registration step.

    Base class for detection, extraction, matching, estimation, and
    resampling failures.
    """


class DetectionError(ProcessorError):
    """Keypoint detection failed."""


class ExtractionError(ProcessorError):
    """Descriptor extraction failed."""


class MatchError(ProcessorError):
    """Descriptor matching or match-to-coordinate conversion failed."""


class EstimationError(ProcessorError):
    """Robust transform estimation failed."""


class ResampleError(ProcessorError):
    """Resampling a volume to new voxel spacing failed."""


class DependencyError(VolregError, ImportError):
    """Missing dependency required for a specific module.

    Raised when a module requires a package (e.g. opencv) that is not
    installed.
    """
