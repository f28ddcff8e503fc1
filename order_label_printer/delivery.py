"""
Dropbox token handling and label upload.
"""

# Standard Library
import dataclasses
import json
import logging
import os
import time

# PIP3 modules
import requests

# local repo modules
import order_label_printer as olp
import order_label_printer.errors


DeliveryError = olp.errors.DeliveryError

TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"
CREATE_FOLDER_URL = "https://api.dropboxapi.com/2/files/create_folder_v2"
UPLOAD_URL = "https://content.dropboxapi.com/2/files/upload"
FOLDER_CONFLICT_PREFIX = "path/conflict/folder"
TOKEN_EXPIRY_BUFFER_SECONDS = 300.0
REQUEST_TIMEOUT_SECONDS = 30.0

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class TokenCache:
	access_token: str | None = None
	expires_at: float = 0.0

	def is_valid(self, now: float, buffer_seconds: float = TOKEN_EXPIRY_BUFFER_SECONDS) -> bool:
		"""
		Check whether the cached token outlives the expiry buffer.
		"""
		return bool(self.access_token) and self.expires_at > now + buffer_seconds

	def store(self, access_token: str, expires_in: float, now: float) -> None:
		self.access_token = access_token
		self.expires_at = now + expires_in

	def clear(self) -> None:
		self.access_token = None
		self.expires_at = 0.0


#============================================
def read_error_summary(response: requests.Response) -> str:
	"""
	Pull the Dropbox error_summary out of an error response.

	Args:
		response: HTTP response.

	Returns:
		Error summary, or the raw body when the response is not JSON.
	"""
	try:
		payload = response.json()
	except ValueError:
		return response.text
	if isinstance(payload, dict) and payload.get("error_summary"):
		return str(payload["error_summary"])
	return response.text


class DropboxTokenProvider:
	"""
	Hands out Dropbox access tokens.

	With a refresh token, short-lived access tokens are refreshed and kept
	in the given TokenCache until shortly before they expire. A manual
	access token is used as-is when no refresh token is configured.
	"""

	def __init__(
		self,
		refresh_token: str | None = None,
		app_key: str | None = None,
		app_secret: str | None = None,
		manual_token: str | None = None,
		cache: TokenCache | None = None,
		session: requests.Session | None = None,
	):
		self.refresh_token = refresh_token
		self.app_key = app_key
		self.app_secret = app_secret
		self.manual_token = manual_token
		self.cache = cache if cache is not None else TokenCache()
		self.session = session if session is not None else requests.Session()

	@classmethod
	def from_env(
		cls,
		cache: TokenCache | None = None,
		session: requests.Session | None = None,
	) -> "DropboxTokenProvider":
		"""
		Build a provider from DROPBOX_* environment settings.
		"""
		return cls(
			refresh_token=os.environ.get("DROPBOX_REFRESH_TOKEN"),
			app_key=os.environ.get("DROPBOX_APP_KEY"),
			app_secret=os.environ.get("DROPBOX_APP_SECRET"),
			manual_token=os.environ.get("DROPBOX_ACCESS_TOKEN"),
			cache=cache,
			session=session,
		)

	def get_access_token(self, now: float | None = None) -> str:
		"""
		Return a valid access token, refreshing when needed.

		Args:
			now: Current epoch seconds; defaults to time.time().

		Returns:
			Access token.
		"""
		if now is None:
			now = time.time()
		if self.refresh_token:
			if self.cache.is_valid(now):
				return self.cache.access_token
			return self.refresh(now)
		if self.manual_token:
			logger.warning("Using a manual DROPBOX_ACCESS_TOKEN; it expires after 4 hours")
			return self.manual_token
		raise DeliveryError("Either DROPBOX_REFRESH_TOKEN or DROPBOX_ACCESS_TOKEN must be set")

	def refresh(self, now: float) -> str:
		"""
		Exchange the refresh token for a new access token.

		Args:
			now: Current epoch seconds.

		Returns:
			New access token.
		"""
		if not self.app_key or not self.app_secret:
			raise DeliveryError("DROPBOX_APP_KEY and DROPBOX_APP_SECRET are required for token refresh")
		logger.info("Refreshing Dropbox access token")
		try:
			response = self.session.post(
				TOKEN_URL,
				data={
					"grant_type": "refresh_token",
					"refresh_token": self.refresh_token,
					"client_id": self.app_key,
					"client_secret": self.app_secret,
				},
				timeout=REQUEST_TIMEOUT_SECONDS,
			)
		except requests.RequestException as error:
			raise DeliveryError(f"Failed to refresh Dropbox token: {error}") from error
		if not response.ok:
			raise DeliveryError(f"Failed to refresh Dropbox token: {response.text}", read_error_summary(response))
		payload = response.json()
		access_token = payload.get("access_token")
		if not access_token:
			raise DeliveryError("Dropbox token response has no access_token")
		expires_in = float(payload.get("expires_in", 0))
		self.cache.store(access_token, expires_in, now)
		logger.info("Dropbox token refreshed (expires in %d seconds)", int(expires_in))
		return access_token


class DropboxUploader:
	"""
	Creates order folders and uploads label PDFs.
	"""

	def __init__(
		self,
		token_provider: DropboxTokenProvider,
		session: requests.Session | None = None,
	):
		self.token_provider = token_provider
		self.session = session if session is not None else requests.Session()

	def _auth_headers(self) -> dict[str, str]:
		return {"Authorization": f"Bearer {self.token_provider.get_access_token()}"}

	def create_folder(self, path: str) -> None:
		"""
		Create a folder; an existing folder is not an error.

		Args:
			path: Dropbox folder path.
		"""
		headers = self._auth_headers()
		headers["Content-Type"] = "application/json"
		try:
			response = self.session.post(
				CREATE_FOLDER_URL,
				headers=headers,
				data=json.dumps({"path": path, "autorename": False}),
				timeout=REQUEST_TIMEOUT_SECONDS,
			)
		except requests.RequestException as error:
			raise DeliveryError(f"Dropbox create folder failed: {error}") from error
		if response.ok:
			return
		summary = read_error_summary(response)
		if FOLDER_CONFLICT_PREFIX in summary:
			logger.debug("Dropbox folder already exists: %s", path)
			return
		raise DeliveryError(f"Dropbox create folder failed: {summary}", summary)

	def upload(self, path: str, data: bytes) -> str:
		"""
		Upload one file without overwriting.

		Args:
			path: Dropbox file path.
			data: File contents.

		Returns:
			Uploaded path.
		"""
		headers = self._auth_headers()
		headers["Content-Type"] = "application/octet-stream"
		headers["Dropbox-API-Arg"] = json.dumps(
			{"path": path, "mode": "add", "autorename": False, "mute": False}
		)
		try:
			response = self.session.post(
				UPLOAD_URL,
				headers=headers,
				data=data,
				timeout=REQUEST_TIMEOUT_SECONDS,
			)
		except requests.RequestException as error:
			raise DeliveryError(f"Dropbox upload failed for {path}: {error}") from error
		if not response.ok:
			summary = read_error_summary(response)
			raise DeliveryError(f"Dropbox upload failed for {path}: {summary}", summary)
		return path

	def upload_labels(self, folder_path: str, labels: list["olp.render.RenderedLabel"]) -> list[str]:
		"""
		Upload rendered labels into a folder.

		Args:
			folder_path: Dropbox folder path.
			labels: RenderedLabel entries.

		Returns:
			Uploaded file paths.
		"""
		self.create_folder(folder_path)
		uploaded: list[str] = []
		for label in labels:
			uploaded.append(self.upload(f"{folder_path}/{label.filename}", label.data))
		return uploaded
