"""Exceptions raised by cdylib-wheel.

Every failure is terminal for the invocation; the CLI reports the ``stage``
of the error and exits non-zero.
"""


class CdylibWheelError(Exception):
    """Base class for all cdylib-wheel exceptions."""

    stage = "error"


class ConfigurationError(CdylibWheelError):
    """The build is misconfigured (binding dependency, ABI3 features, config file)."""

    stage = "configuration"


class DiscoveryError(CdylibWheelError):
    """Python interpreters could not be enumerated or probed."""

    stage = "interpreter discovery"


class PackagingError(CdylibWheelError):
    """A wheel archive could not be created, written or finalized."""

    stage = "packaging"


class ManifestError(CdylibWheelError):
    """The Cargo manifest could not be read or parsed."""

    stage = "manifest"
