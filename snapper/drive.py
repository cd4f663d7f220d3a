"""
Google Drive uploader.

Credentials are resolved through an ordered chain of providers (inline
JSON, path from the environment, conventional key file); the first one
that yields service-account info wins. Uploads go through the Drive v3
API and return the new file's id, name and viewer URL.
"""

from __future__ import annotations

import json
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence

from google.auth.exceptions import RefreshError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from shared.config import AppConfig
from shared.logging import get_logger
from snapper.constants import (
    CONTENT_TYPES,
    CREDENTIALS_FILENAME,
    DEFAULT_CONTENT_TYPE,
    DRIVE_FILE_URL,
    DRIVE_SCOPES,
)
from snapper.errors import DriveAuthError, DriveUploadError
from snapper.models import DriveFile

logger = get_logger(__name__)


class CredentialProvider(Protocol):
    name: str

    def load(self) -> Optional[dict[str, Any]]:
        """Return service-account info, None if this source is not configured."""


@dataclass(frozen=True)
class InlineJsonProvider:
    raw_json: Optional[str]
    name: str = "inline_json"

    def load(self) -> Optional[dict[str, Any]]:
        if not self.raw_json:
            return None
        return json.loads(self.raw_json)


@dataclass(frozen=True)
class JsonFileProvider:
    path: Optional[str]
    name: str = "credentials_path"
    # Conventional locations may simply be absent; configured paths may not.
    optional: bool = False

    def load(self) -> Optional[dict[str, Any]]:
        if not self.path:
            return None
        file_path = Path(self.path)
        if self.optional and not file_path.exists():
            return None
        return json.loads(file_path.read_text(encoding="utf-8"))


def default_credential_providers(config: AppConfig) -> list[CredentialProvider]:
    """Providers in priority order for the given config."""
    if config.hosted:
        conventional = str(Path(config.temp_dir) / CREDENTIALS_FILENAME)
    else:
        conventional = str(Path(".") / CREDENTIALS_FILENAME)
    return [
        InlineJsonProvider(config.google_credentials_json),
        JsonFileProvider(config.google_application_credentials),
        JsonFileProvider(conventional, name="conventional_file", optional=True),
    ]


def resolve_credentials_info(providers: Sequence[CredentialProvider]) -> dict[str, Any]:
    """
    Try providers in order; the first that returns info wins.

    Raises DriveAuthError listing every provider's outcome when none succeed.
    """
    failures: list[str] = []
    for provider in providers:
        try:
            info = provider.load()
        except (OSError, ValueError) as e:
            logger.warning(
                "drive.credentials_provider_failed",
                provider=provider.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            failures.append(f"{provider.name}: {e}")
            continue
        if info is None:
            failures.append(f"{provider.name}: not configured")
            continue
        logger.info("drive.credentials_resolved", provider=provider.name)
        return info
    raise DriveAuthError("No usable Google credentials (" + "; ".join(failures) + ")")


def determine_content_type(file_path: str | Path) -> str:
    return CONTENT_TYPES.get(Path(file_path).suffix.lower(), DEFAULT_CONTENT_TYPE)


def build_drive_file_name(prefix: str, extension: str, now: Optional[datetime] = None) -> str:
    """`{prefix}_{iso timestamp, ':' -> '-'}_{short hex}.{extension}`."""
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z").replace(":", "-")
    return f"{prefix}_{stamp}_{secrets.token_hex(2)}.{extension.lstrip('.')}"


def build_drive_service(info: dict[str, Any]) -> Any:
    try:
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=list(DRIVE_SCOPES)
        )
    except (ValueError, KeyError) as e:
        raise DriveAuthError(f"Invalid service account credentials: {e}") from e
    return build("drive", "v3", credentials=credentials, cache_discovery=False)


class DriveUploader:
    """
    Uploads local files into Drive folders.

    The Drive service is built lazily on first upload and reused for the
    rest of the invocation.
    """

    def __init__(
        self,
        providers: Sequence[CredentialProvider],
        service_factory: Callable[[dict[str, Any]], Any] = build_drive_service,
    ) -> None:
        self._providers = list(providers)
        self._service_factory = service_factory
        self._service: Any = None

    @classmethod
    def from_config(cls, config: AppConfig) -> "DriveUploader":
        return cls(default_credential_providers(config))

    def _get_service(self) -> Any:
        if self._service is None:
            info = resolve_credentials_info(self._providers)
            self._service = self._service_factory(info)
        return self._service

    def upload(
        self,
        local_path: str | Path,
        name_prefix: str,
        folder_id: Optional[str],
        extension: str,
    ) -> DriveFile:
        """
        Upload `local_path` into `folder_id`.

        Raises DriveAuthError when credentials cannot be resolved and
        DriveUploadError when the upload cannot be performed.
        """
        if not folder_id:
            raise DriveUploadError(f"No Drive folder configured for {name_prefix}")

        service = self._get_service()
        file_name = build_drive_file_name(name_prefix, extension)
        content_type = determine_content_type(local_path)

        logger.info(
            "drive.upload_started",
            local_path=str(local_path),
            folder_id=folder_id,
            file_name=file_name,
            content_type=content_type,
        )
        try:
            media = MediaFileUpload(str(local_path), mimetype=content_type, resumable=False)
            response = (
                service.files()
                .create(
                    body={"name": file_name, "parents": [folder_id]},
                    media_body=media,
                    fields="id,name,webViewLink",
                    supportsAllDrives=True,
                )
                .execute()
            )
        except RefreshError as e:
            logger.error("drive.auth_refresh_failed", error=str(e), error_type=type(e).__name__)
            raise DriveAuthError(f"Failed to authorize with Google: {e}") from e
        except (HttpError, OSError) as e:
            logger.error(
                "drive.upload_failed",
                local_path=str(local_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DriveUploadError(str(e)) from e

        file_id = response["id"]
        logger.info("drive.upload_completed", file_id=file_id)
        return DriveFile(
            id=file_id,
            name=response.get("name", file_name),
            url=response.get("webViewLink") or DRIVE_FILE_URL.format(file_id=file_id),
        )
