"""
Errors raised when the firmware reports a failure in its response envelope.

Transport errors (httpx.HTTPError) and decode errors (pydantic.ValidationError)
are not wrapped and reach the caller unchanged.
"""


class RRFError(Exception):
    """Base class for failures reported by the firmware"""


class RemoteFileNotFoundError(RRFError):
    """rr_fileinfo answered with a nonzero error code"""

    def __init__(self, path: str = ""):
        self.path = path
        super().__init__(f"File not found: {path}" if path else "File not found")


class DirectoryNotFoundError(RRFError):
    """rr_filelist answered with error code 2"""

    def __init__(self, path: str = ""):
        self.path = path
        super().__init__(
            f"Directory not found: {path}" if path else "Directory not found"
        )


class DriveNotMountedError(RRFError):
    """rr_filelist answered with error code 1"""

    def __init__(self, path: str = ""):
        self.path = path
        super().__init__(
            f"Drive not mounted: {path}" if path else "Drive not mounted"
        )


class OperationFailedError(RRFError):
    """Any other nonzero error code, carrying the attempted action"""

    def __init__(self, action: str, err: int | None = None):
        self.action = action
        self.err = err
        super().__init__(f"Failed to perform: {action}")
