"""Exception hierarchy for the bezel generator.

Pipeline-level errors (registry load, probe build, persistence) end the run.
Per-device errors are caught in the device loop and turned into a
"problematic" classification.
"""


class BezelError(Exception):
    """Base class for every error raised by bezelgen."""


class ConfigError(BezelError):
    """A configuration value could not be interpreted."""


class RegistryLoadError(BezelError):
    """The registry file is missing or malformed."""

    def __init__(self, path, message: str):
        self.path = str(path)
        super().__init__(f"{self.path}: {message}")


class RegistryNotFound(RegistryLoadError):
    pass


class RegistryParseError(RegistryLoadError):
    pass


class SimctlError(BezelError):
    """An `xcrun simctl` invocation exited non-zero."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"{' '.join(self.cmd)} exited {returncode}{detail}")


class UnresolvableDevice(BezelError):
    """No installed runtime supports the requested device name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"no supported runtime found for device: {name}")


class ProvisioningError(BezelError):
    """A simulator instance could not be created."""


class ExtractionFailed(BezelError):
    """The probe app did not yield a usable measurement."""


class ExtractionTimeout(ExtractionFailed):
    pass


class ExtractionParseError(ExtractionFailed):
    pass


class ProbeBuildError(BezelError):
    """The probe app could not be built or located."""


class PersistenceError(BezelError):
    """Writing the canonical registry or the distributable artifact failed."""
