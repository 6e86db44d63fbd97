# -*- coding: utf-8 -*-
"""
Processor Versioning - Version decorator for registration components.

Provides the ``@processor_version`` class decorator for stamping semantic
version strings on detectors and registration sessions. Downstream code can
record ``__processor_version__`` alongside results to know which algorithm
revision produced them.

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

# Standard library
from typing import Optional, Type, TypeVar, overload
import importlib.metadata

T = TypeVar('T')


@overload
def processor_version(version: str):
    ...

@overload
def processor_version():
    ...

def processor_version(version: Optional[str] = None):
    """Class decorator that stamps a processor version on a component.

    Sets ``__processor_version__`` as a class attribute. This version is the
    single source of truth for the algorithm revision of the class.

    If a version is not provided, it is inferred from the installed package
    metadata, falling back to ``"unknown"`` for source checkouts.

    Parameters
    ----------
    version : str
        Semantic version string (e.g., ``'1.0.0'``).

    Returns
    -------
    Callable
        Class decorator that sets ``__processor_version__`` on the class.

    Examples
    --------
    >>> @processor_version('1.0.0')
    ... class MyDetector(FeatureDetector):
    ...     ...
    >>> MyDetector.__processor_version__
    '1.0.0'
    """
    def decorator(cls: Type[T]) -> Type[T]:
        if version:
            cls.__processor_version__ = version
        else:
            try:
                cls.__processor_version__ = importlib.metadata.version('volreg')
            except importlib.metadata.PackageNotFoundError:
                cls.__processor_version__ = "unknown"
        return cls
    return decorator
