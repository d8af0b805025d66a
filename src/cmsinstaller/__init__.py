"""
cmsinstaller - First-time setup of the CMS database and file profile
"""

__version__ = "0.3.0"

from .core import Installer, InstallerError

__all__ = ["Installer", "InstallerError"]
