"""Installer errors.

Every failure in the workflow is fatal. Adapters and services raise
`InstallerError`; only the CLI turns it into a message and an exit status.
"""

from __future__ import annotations


class InstallerError(Exception):
    """Fatal installer failure.

    `exit_code` is the process status the CLI should exit with (1 unless a
    caller needs something else).
    """

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code

    def __str__(self) -> str:
        return self.message
