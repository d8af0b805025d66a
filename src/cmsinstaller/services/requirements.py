"""Environment requirement checks for cmsinstaller."""

import importlib.util
import os
import platform
import shutil
import sys
from typing import Callable, List, Optional, Sequence, Tuple

from packaging import version

from cmsinstaller.models import RequirementCheck

MIN_PYTHON_VERSION = "3.8"

REQUIRED_MODULES = (
    ("pymysql", "PyMySQL"),
    ("yaml", "PyYAML"),
)

# Binaries used by the media pipeline. Missing ones only disable features.
EXTERNAL_TOOLS: Tuple[Tuple[str, str, str], ...] = (
    ("ffmpeg", "ffmpeg", "Video thumbnails and transcoding"),
    ("ghostscript", "gs", "PDF thumbnails"),
    ("libreoffice", "soffice", "Office document previews"),
    ("pdftotext", "pdftotext", "PDF text extraction"),
    ("inkscape", "inkscape", "SVG rasterization"),
    ("wkhtmltoimage", "wkhtmltoimage", "Document screenshots"),
    ("wkhtmltopdf", "wkhtmltopdf", "Web-to-print PDF generation"),
    ("html2text", "html2text", "Plain-text newsletter versions"),
    ("timeout", "timeout", "Limiting runtime of external tools"),
    ("zopflipng", "zopflipng", "PNG optimization"),
    ("pngcrush", "pngcrush", "PNG optimization"),
    ("jpegoptim", "jpegoptim", "JPEG optimization"),
    ("pngout", "pngout", "PNG optimization"),
    ("advpng", "advpng", "PNG optimization"),
    ("mozjpeg", "cjpeg", "JPEG optimization"),
    ("exiftool", "exiftool", "Image metadata extraction"),
    ("graphviz", "dot", "Workflow graph rendering"),
    ("sqip", "sqip", "SVG image placeholders"),
    ("facedetect", "facedetect", "Focal point detection for thumbnails"),
)

DOCS_LINK = "https://docs.python.org/3/using/index.html"


class RequirementsService:
    """Runs filesystem, runtime and external tool checks."""

    def __init__(
        self,
        install_root: str,
        filesystem_service,
        which: Callable[[str], Optional[str]] = shutil.which,
        python_version: Optional[str] = None,
        module_finder: Callable = importlib.util.find_spec,
    ):
        self.install_root = install_root
        self.filesystem_service = filesystem_service
        self.which = which
        self.python_version = python_version or platform.python_version()
        self.module_finder = module_finder

    def check_filesystem(self) -> List[RequirementCheck]:
        checks = []
        for relative in ("var", os.path.join("web", "var")):
            path = os.path.join(self.install_root, relative)
            if self.filesystem_service.is_writable(path):
                checks.append(
                    RequirementCheck(
                        name=f"{relative} writable",
                        state=RequirementCheck.STATE_OK,
                        message=f"{path} is writable",
                    )
                )
            else:
                checks.append(
                    RequirementCheck(
                        name=f"{relative} writable",
                        state=RequirementCheck.STATE_ERROR,
                        message=f"{path} needs to be writable",
                    )
                )
        return checks

    def check_runtime(self) -> List[RequirementCheck]:
        checks = []

        if version.parse(self.python_version) >= version.parse(MIN_PYTHON_VERSION):
            checks.append(
                RequirementCheck(
                    name="Python version",
                    state=RequirementCheck.STATE_OK,
                    message=f"Python {self.python_version}",
                )
            )
        else:
            checks.append(
                RequirementCheck(
                    name="Python version",
                    state=RequirementCheck.STATE_ERROR,
                    message=(
                        f"Python {MIN_PYTHON_VERSION} or newer is required "
                        f"(running {self.python_version})"
                    ),
                    link=DOCS_LINK,
                )
            )

        for module_name, distribution in REQUIRED_MODULES:
            if self.module_finder(module_name) is not None:
                state = RequirementCheck.STATE_OK
                message = f"{distribution} is installed"
            else:
                state = RequirementCheck.STATE_ERROR
                message = f"{distribution} is not installed"
            checks.append(RequirementCheck(name=distribution, state=state, message=message))

        encoding = sys.getfilesystemencoding().lower().replace("-", "")
        checks.append(
            RequirementCheck(
                name="Filesystem encoding",
                state=RequirementCheck.STATE_OK if encoding == "utf8" else RequirementCheck.STATE_WARNING,
                message=f"Filesystem encoding is {sys.getfilesystemencoding()}",
            )
        )
        return checks

    def check_external_tools(self) -> List[RequirementCheck]:
        checks = []
        for name, binary, purpose in EXTERNAL_TOOLS:
            location = self.which(binary)
            if location:
                checks.append(
                    RequirementCheck(name=name, state=RequirementCheck.STATE_OK, message=location)
                )
            else:
                checks.append(
                    RequirementCheck(
                        name=name,
                        state=RequirementCheck.STATE_WARNING,
                        message=f"`{binary}` not found on PATH. {purpose} will be unavailable.",
                    )
                )
        return checks

    def check_all(self) -> List[RequirementCheck]:
        return self.check_filesystem() + self.check_runtime() + self.check_external_tools()

    @staticmethod
    def errors(checks: Sequence[RequirementCheck]) -> List[RequirementCheck]:
        return [check for check in checks if check.state == RequirementCheck.STATE_ERROR]
