"""Process exit codes.

The installer contract is deliberately coarse: scripts and CI jobs only need
to know whether the operation succeeded. Detail goes to the console, not the
exit status.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: Any fatal error (parse, metadata, fetch, integrity, corrupt archive,
      configuration, publish)
    """

    OK = 0
    FAILURE = 1

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
