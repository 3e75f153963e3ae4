"""ast-grep installation detection and helpers.

A missing or outdated ast-grep is a normal, reportable condition: every
probe here returns a ``ToolStatus`` instead of raising.
"""

import asyncio
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass

from .indexer_logging import get_logger

logger = get_logger()

# sg is the common alias
AST_GREP_COMMANDS = ("sg", "ast-grep")

# First release with --json=stream output
MINIMUM_VERSION = "0.20.0"

VERSION_PROBE_TIMEOUT = 5

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)")


@dataclass
class ToolStatus:
    """Result of probing for ast-grep.

    Attributes:
        found: Whether a working command was found
        version: Reported version string, if found
        command: Command name to invoke, if found
        path: Resolved executable path, if resolvable
    """

    found: bool
    version: str | None = None
    command: str | None = None
    path: str | None = None

    @property
    def usable(self) -> bool:
        """Found and new enough."""
        return self.found and meets_minimum_version(self.version)


def _probe(command: str) -> ToolStatus | None:
    try:
        result = subprocess.run(
            [command, "--version"],
            capture_output=True,
            text=True,
            timeout=VERSION_PROBE_TIMEOUT,
            check=False,
        )
    except (FileNotFoundError, OSError, subprocess.TimeoutExpired):
        return None

    if result.returncode != 0:
        return None

    version = re.sub(r"^ast-grep\s*", "", result.stdout.strip(), flags=re.IGNORECASE)
    return ToolStatus(
        found=True,
        version=version or None,
        command=command,
        path=shutil.which(command),
    )


def check_installed() -> ToolStatus:
    """Check whether ast-grep is installed.

    Returns:
        ToolStatus for the first working command, or ``found=False``
    """
    for command in AST_GREP_COMMANDS:
        status = _probe(command)
        if status is not None:
            logger.debug(f"Found {command} {status.version} at {status.path}")
            return status

    logger.debug("ast-grep not found on PATH")
    return ToolStatus(found=False)


async def check_installed_async() -> ToolStatus:
    """Asynchronous variant of ``check_installed``."""
    return await asyncio.to_thread(check_installed)


def get_minimum_version() -> str:
    """Get minimum required version."""
    return MINIMUM_VERSION


def _parse_version(version: str | None) -> tuple[int, int, int] | None:
    if not version:
        return None
    match = _VERSION_RE.match(version.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def meets_minimum_version(version: str | None, minimum: str = MINIMUM_VERSION) -> bool:
    """Check whether ``version`` is at least ``minimum``.

    Pre-release suffixes ("0.25.0-beta.1") are ignored. Unparsable versions
    never meet the minimum.
    """
    parsed = _parse_version(version)
    required = _parse_version(minimum)
    if parsed is None or required is None:
        return False
    return parsed >= required


def tool_error(status: ToolStatus) -> str | None:
    """User-facing error for an unusable tool, None when usable."""
    if not status.found:
        return "ast-grep not found"
    if not meets_minimum_version(status.version):
        return (
            f"ast-grep version {status.version or 'unknown'} is too old. "
            f"Minimum required: {MINIMUM_VERSION}"
        )
    return None


def ensure_tool() -> ToolStatus:
    """Probe for ast-grep and log why it is unusable, if it is."""
    status = check_installed()
    error = tool_error(status)
    if error:
        logger.warning(f"{error}. {get_short_install_suggestion()}")
    return status


def get_install_instructions() -> str:
    """Get installation instructions for ast-grep."""
    return """ast-grep (sg) is required for repo-map functionality.

Install using one of these methods:

  npm:      npm install -g @ast-grep/cli
  pip:      pip install ast-grep-cli
  brew:     brew install ast-grep
  cargo:    cargo install ast-grep --locked
  scoop:    scoop install main/ast-grep

After installation, verify with: sg --version

Documentation: https://ast-grep.github.io/"""


def get_short_install_suggestion() -> str:
    """Get a one-line install suggestion for the current platform."""
    if sys.platform == "win32":
        return "Install ast-grep: npm i -g @ast-grep/cli (or scoop install ast-grep)"
    if sys.platform == "darwin":
        return "Install ast-grep: brew install ast-grep (or npm i -g @ast-grep/cli)"
    return "Install ast-grep: npm i -g @ast-grep/cli (or pip install ast-grep-cli)"
