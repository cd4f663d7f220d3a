"""Exception types raised by the snapper package."""

from __future__ import annotations


class SnapperError(Exception):
    """Base class for snapper errors."""


class DriveError(SnapperError):
    """Google Drive failure (auth or upload)."""


class DriveAuthError(DriveError):
    """No credential provider could produce usable credentials."""


class DriveUploadError(DriveError):
    """The upload itself failed or could not be attempted."""
