"""
Google Drive remote store.

Stores each user's documents as JSON files in Drive: a folder per user id
under a root folder, holding profile.json and a metrics/ folder with one
<date>.json file per day. Provides OAuth2 and Service Account
authentication like any Drive client.
"""

import asyncio
import io
import json
import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google.oauth2.service_account import Credentials as ServiceAccountCredentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from keto_tracker.infrastructure.remote_store.base import stamp
from keto_tracker.utils.exceptions import (
    AuthenticationError,
    NotFoundError,
    TransientRemoteError,
)
from keto_tracker.utils.parameters import DriveConfig

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
JSON_MIME_TYPE = "application/json"
PROFILE_FILE = "profile.json"
METRICS_FOLDER = "metrics"

T = TypeVar("T")


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveRemoteStore:
    """
    Remote store backed by Google Drive.

    Folder ids are cached per process. Every public call runs the blocking
    API client in a worker thread and maps failures to TransientRemoteError.
    """

    def __init__(self, config: DriveConfig, service: Any = None) -> None:
        """
        Initialize Drive remote store.

        Args:
            config: Drive configuration.
            service: Prebuilt Drive v3 service; authenticates from config when None.

        Raises:
            AuthenticationError: If authentication fails.
        """
        self.config = config
        self.service: Any = service
        self._folder_ids: dict[tuple[str, str], str] = {}
        self._root_id: str | None = config.root_folder_id

        if self.service is None:
            self._authenticate()

    def _authenticate(self) -> None:
        """
        Authenticate with Google Drive API.

        Raises:
            AuthenticationError: If authentication fails.
        """
        try:
            if self.config.auth_method == "oauth2":
                creds: Credentials | ServiceAccountCredentials = self._authenticate_oauth2()
            elif self.config.auth_method == "service_account":
                creds = self._authenticate_service_account()
            else:
                raise AuthenticationError(f"Unknown auth method: {self.config.auth_method}")

            self.service = build("drive", "v3", credentials=creds)
            logger.info(f"Authenticated with Google Drive using {self.config.auth_method}")

        except Exception as e:
            raise AuthenticationError(f"Authentication failed: {e}") from e

    def _authenticate_oauth2(self) -> Credentials:
        """Authenticate using OAuth2 installed app flow."""
        oauth2 = self.config.oauth2
        if oauth2 is None:
            raise AuthenticationError("auth_method is oauth2 but no oauth2 section configured")

        creds: Credentials | None = None
        token_path = Path(oauth2.token_path)

        if token_path.exists():
            creds = Credentials.from_authorized_user_file(str(token_path), oauth2.scopes)

        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                creds.refresh(Request())
            else:
                flow = InstalledAppFlow.from_client_secrets_file(
                    oauth2.credentials_path, oauth2.scopes
                )
                creds = flow.run_local_server(port=0)

            token_path.parent.mkdir(parents=True, exist_ok=True)
            with open(token_path, "w") as token:
                token.write(creds.to_json())

        return creds

    def _authenticate_service_account(self) -> ServiceAccountCredentials:
        """Authenticate using Service Account."""
        account = self.config.service_account
        if account is None:
            raise AuthenticationError(
                "auth_method is service_account but no service_account section configured"
            )
        creds = ServiceAccountCredentials.from_service_account_file(
            account.credentials_path,
            scopes=account.scopes,
        )
        return creds  # type: ignore[no-any-return]

    def _find_child(self, parent_id: str | None, name: str, folder: bool) -> str | None:
        query = f"name='{_quote(name)}' and trashed=false"
        if parent_id:
            query += f" and '{parent_id}' in parents"
        query += f" and mimeType{'=' if folder else '!='}'{FOLDER_MIME_TYPE}'"

        results = self.service.files().list(q=query, fields="files(id, name)").execute()
        files = results.get("files", [])
        return files[0]["id"] if files else None

    def _ensure_folder(self, parent_id: str | None, name: str) -> str:
        cache_key = (parent_id or "", name)
        if cache_key in self._folder_ids:
            return self._folder_ids[cache_key]

        folder_id = self._find_child(parent_id, name, folder=True)
        if folder_id is None:
            body: dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
            if parent_id:
                body["parents"] = [parent_id]
            folder_id = self.service.files().create(body=body, fields="id").execute()["id"]
            logger.info(f"Created Drive folder '{name}' with ID: {folder_id}")

        self._folder_ids[cache_key] = folder_id
        return folder_id

    def _root_folder(self) -> str:
        if self._root_id is None:
            self._root_id = self._ensure_folder(None, self.config.root_folder_name)
        return self._root_id

    def _user_folder(self, user_id: str) -> str:
        return self._ensure_folder(self._root_folder(), user_id)

    def _metrics_folder(self, user_id: str) -> str:
        return self._ensure_folder(self._user_folder(user_id), METRICS_FOLDER)

    def _download_json(self, file_id: str) -> dict[str, Any]:
        content = self.service.files().get_media(fileId=file_id).execute()
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        document: dict[str, Any] = json.loads(content)
        return document

    def _upload_json(self, parent_id: str, name: str, document: dict[str, Any]) -> None:
        media = MediaIoBaseUpload(
            io.BytesIO(json.dumps(document).encode("utf-8")), mimetype=JSON_MIME_TYPE
        )
        existing_id = self._find_child(parent_id, name, folder=False)
        if existing_id:
            self.service.files().update(fileId=existing_id, media_body=media).execute()
        else:
            body = {"name": name, "parents": [parent_id], "mimeType": JSON_MIME_TYPE}
            self.service.files().create(body=body, media_body=media, fields="id").execute()

    def _get_profile(self, user_id: str) -> dict[str, Any]:
        file_id = self._find_child(self._user_folder(user_id), PROFILE_FILE, folder=False)
        if file_id is None:
            raise NotFoundError(f"No profile for user {user_id}")
        return self._download_json(file_id)

    def _put_profile(self, user_id: str, profile: dict[str, Any]) -> None:
        folder_id = self._user_folder(user_id)
        merged: dict[str, Any] = {}
        existing_id = self._find_child(folder_id, PROFILE_FILE, folder=False)
        if existing_id:
            merged = self._download_json(existing_id)
        merged.update(stamp(profile))
        self._upload_json(folder_id, PROFILE_FILE, merged)

    def _put_metric(self, user_id: str, metric: dict[str, Any]) -> None:
        metric_date = metric.get("date")
        if not metric_date:
            raise TransientRemoteError("Metric document has no date key")
        self._upload_json(self._metrics_folder(user_id), f"{metric_date}.json", stamp(metric))

    def _list_metrics(self, user_id: str) -> list[dict[str, Any]]:
        folder_id = self._metrics_folder(user_id)
        query = f"'{folder_id}' in parents and trashed=false"

        documents: list[dict[str, Any]] = []
        page_token = None

        while True:
            results = (
                self.service.files()
                .list(q=query, fields="nextPageToken, files(id, name)", pageToken=page_token, pageSize=100)
                .execute()
            )

            for file_data in results.get("files", []):
                if file_data["name"].endswith(".json"):
                    documents.append(self._download_json(file_data["id"]))

            page_token = results.get("nextPageToken")
            if not page_token:
                break

        documents.sort(key=lambda d: str(d.get("date", "")), reverse=True)
        logger.debug(f"Listed {len(documents)} metric documents for user {user_id}")
        return documents

    async def _call(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except (NotFoundError, TransientRemoteError):
            raise
        except Exception as e:
            raise TransientRemoteError(f"Drive call {func.__name__} failed: {e}") from e

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        return await self._call(self._get_profile, user_id)

    async def put_profile(self, user_id: str, profile: dict[str, Any]) -> None:
        await self._call(self._put_profile, user_id, profile)

    async def put_metric(self, user_id: str, metric: dict[str, Any]) -> None:
        await self._call(self._put_metric, user_id, metric)

    async def list_metrics(self, user_id: str) -> list[dict[str, Any]]:
        return await self._call(self._list_metrics, user_id)
