"""Cloud backup through the Firebase REST APIs.

The device signs in anonymously once; its uid and refresh token are kept in
the local settings so later syncs reuse the same remote document.
"""
import logging
import threading

import requests

from lak.constants import FIREBASE_API_KEY, FIREBASE_DATABASE_URL, CLOUD_TIMEOUT
from lak.errors import (
    CloudNotConfigured,
    CloudRequestFailed,
    IdentityUnavailable,
    NoRemoteData,
    StorageError,
    SyncInProgress
)

logger = logging.getLogger(__name__)

SIGN_UP_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signUp"
REFRESH_URL = "https://securetoken.googleapis.com/v1/token"
SERVER_TIMESTAMP = {".sv": "timestamp"}


class CloudSync:
    def __init__(self, storage, api_key=FIREBASE_API_KEY, database_url=FIREBASE_DATABASE_URL,
                 timeout=CLOUD_TIMEOUT):
        self.storage = storage
        self.api_key = api_key
        self.database_url = (database_url or "").rstrip("/")
        self.timeout = timeout
        self._lock = threading.Lock()
        self._in_flight = False

    def is_configured(self):
        return bool(self.api_key and self.database_url)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    def _request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise CloudRequestFailed(f"Gagal terhubung ke Cloud: {exc}") from exc

        if response.status_code >= 400:
            raise CloudRequestFailed(
                f"Cloud error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise CloudRequestFailed("Respons Cloud tidak valid") from exc

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def _sign_in(self):
        settings = self.storage.get_settings()
        refresh_token = settings.get("cloudRefreshToken")
        try:
            if refresh_token:
                data = self._request(
                    "POST", REFRESH_URL,
                    params={"key": self.api_key},
                    data={"grant_type": "refresh_token", "refresh_token": refresh_token},
                )
                uid, token = data.get("user_id"), data.get("id_token")
                refresh_token = data.get("refresh_token", refresh_token)
            else:
                data = self._request(
                    "POST", SIGN_UP_URL,
                    params={"key": self.api_key},
                    json={"returnSecureToken": True},
                )
                uid, token = data.get("localId"), data.get("idToken")
                refresh_token = data.get("refreshToken")
        except CloudRequestFailed as exc:
            raise IdentityUnavailable(f"Gagal mengenali pengguna: {exc}") from exc

        if not uid or not token:
            raise IdentityUnavailable("Gagal mengenali pengguna (Anonymous)")

        if not self.storage.update_settings(cloudUserId=uid, cloudRefreshToken=refresh_token):
            logger.warning("Identitas Cloud tidak tersimpan secara lokal")
        return uid, token

    def user_id(self):
        return self.storage.get_settings().get("cloudUserId")

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------
    def _begin(self):
        if not self.is_configured():
            raise CloudNotConfigured("Cloud belum dikonfigurasi (API key / database URL)")
        with self._lock:
            if self._in_flight:
                raise SyncInProgress("Sinkronisasi sedang berjalan")
            self._in_flight = True

    def _end(self):
        with self._lock:
            self._in_flight = False

    @property
    def busy(self):
        return self._in_flight

    def _document_url(self, uid):
        return f"{self.database_url}/users/{uid}.json"

    def push(self):
        """Overwrite the remote document with the local data."""
        self._begin()
        try:
            uid, token = self._sign_in()
            payload = {"appData": self.storage.export_all_data(), "lastSync": SERVER_TIMESTAMP}
            self._request("PUT", self._document_url(uid), params={"auth": token}, json=payload)
            logger.info("Data diunggah ke Cloud untuk %s", uid)
            return True
        finally:
            self._end()

    def pull(self):
        """Replace local data with the remote document; returns its lastSync."""
        self._begin()
        try:
            uid, token = self._sign_in()
            document = self._request("GET", self._document_url(uid), params={"auth": token})
            if not document or not document.get("appData"):
                raise NoRemoteData("Tidak ada data tersimpan di Cloud.")
            if not self.storage.import_all_data(document["appData"]):
                raise StorageError("Gagal menerapkan data dari Cloud.")
            logger.info("Data Cloud diterapkan untuk %s", uid)
            return document.get("lastSync")
        finally:
            self._end()
