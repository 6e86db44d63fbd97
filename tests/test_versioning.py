# -*- coding: utf-8 -*-
"""
Processor Versioning Tests.

Tests for the @processor_version decorator and the versions stamped on
the registration components.

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

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

import importlib.metadata

from volreg.coregistration.session import RegistrationSession
from volreg.features.detector import ScaleSpaceDetector
from volreg.versioning import processor_version


class TestProcessorVersionDecorator:
    """Test that @processor_version stamps the version correctly."""

    def test_stamps_version_on_class(self):
        @processor_version('2.1.0')
        class _Versioned:
            pass

        assert _Versioned.__processor_version__ == '2.1.0'

    def test_returns_same_class(self):
        class _Plain:
            pass

        assert processor_version('1.0.0')(_Plain) is _Plain

    def test_missing_version_uses_package_metadata(self, monkeypatch):
        monkeypatch.setattr(importlib.metadata, 'version', lambda name: '9.9.9')

        @processor_version()
        class _Inferred:
            pass

        assert _Inferred.__processor_version__ == '9.9.9'

    def test_missing_metadata_is_unknown(self, monkeypatch):
        def missing(name):
            raise importlib.metadata.PackageNotFoundError(name)

        monkeypatch.setattr(importlib.metadata, 'version', missing)

        @processor_version()
        class _Unknown:
            pass

        assert _Unknown.__processor_version__ == 'unknown'


class TestComponentVersions:

    def test_registration_session(self):
        assert RegistrationSession.__processor_version__ == '0.1.0'

    def test_scale_space_detector(self):
        assert ScaleSpaceDetector.__processor_version__ == '0.1.0'
