"""Domain errors for cmsinstaller."""


class InstallerError(RuntimeError):
    """Raised when the installation cannot continue safely."""


class ProfileNotFoundError(InstallerError):
    """Raised when a profile id is unknown to the locator."""
