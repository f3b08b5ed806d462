"""Error taxonomy for the provisioning pipeline.

Every error here is fatal for a provisioning run and propagates to the
top-level caller, which presents the message and relies on the runner to
remove the workspace.
"""


class ProvisioningError(Exception):
    """Base class for all provisioning failures."""

    pass


class RetrievalError(ProvisioningError):
    """Raised when the template bundle cannot be fetched from the registry."""

    pass


class UnsafePathError(ProvisioningError):
    """Raised when an archive entry would be written outside the destination root."""

    def __init__(self, entry: str, root: str) -> None:
        self.entry = entry
        self.root = root
        super().__init__(f"Archive entry escapes destination root {root}: {entry}")


class ExtractionError(ProvisioningError):
    """Raised when extracting an archive entry fails."""

    def __init__(self, entry: str, reason: str = "") -> None:
        self.entry = entry
        self.reason = reason
        message = f"Failed to extract {entry}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ManifestInconsistencyError(ProvisioningError):
    """Raised when a file declared by a manifest is missing.

    This indicates a packaging defect in the template bundle, not a user
    error, and is never retried.
    """

    def __init__(self, source: str, manifest: str) -> None:
        self.source = source
        self.manifest = manifest
        super().__init__(
            f"Template file '{source}' declared by manifest '{manifest}' is missing"
        )


class DependencyInstallError(ProvisioningError):
    """Raised when the external package manager fails for a dependency."""

    def __init__(self, dependency: str, returncode: int | None = None, stderr: str = "") -> None:
        self.dependency = dependency
        self.returncode = returncode
        self.stderr = stderr
        message = f"Failed to install {dependency}"
        if returncode is not None:
            message += f" (exit {returncode})"
        if stderr:
            message += f"\n{stderr}"
        super().__init__(message)


class ProjectWriteError(ProvisioningError):
    """Raised when a file cannot be written into the project root."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"Cannot write {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ActivationError(ProvisioningError):
    """Raised when a marker-annotated file cannot be read or rewritten."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"Cannot activate markers in {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
