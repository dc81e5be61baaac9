"""API client for File Browser servers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable
from urllib.parse import quote

import httpx

from .config import config
from .exceptions import (
    FileBrowserAPIError,
    FileBrowserAuthenticationError,
    FileBrowserConfigError,
    FileBrowserInvalidResponseError,
    FileBrowserLocalIOError,
    FileBrowserNetworkError,
    FileBrowserNotFoundError,
)
from .models import FileItem, RemoteDirectory, RemoteNode, parse_resource
from .utils import (
    IO_CHUNK_SIZE,
    USER_AGENT,
    encode_path,
    encode_segments,
    normalize_remote_path,
)

logger = logging.getLogger(__name__)


class FileBrowserClient:
    """Client for interacting with a File Browser server.

    The client is the session object: it owns the HTTP connection and the
    authentication token obtained by :meth:`login`, and every remote
    operation goes through it.
    """

    def __init__(
        self,
        url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        token: str | None = None,
        timeout: float = 60.0,
    ):
        """Initialize File Browser API client.

        Args:
            url: Server base URL (uses config if not provided)
            username: Login name (uses config if not provided)
            password: Password (uses config if not provided)
            token: Existing auth token, skips the need for login()
            timeout: Request timeout in seconds (default: 60.0)
        """
        self.url = (url or config.url or "").rstrip("/")
        self.username = username or config.username
        self.password = password or config.password
        self.token = token
        self.timeout = timeout

        if not self.url:
            raise FileBrowserConfigError(
                "Server URL not configured. "
                "Please set FILEBROWSER_URL environment variable."
            )

        self._client: httpx.Client | None = None

    def __enter__(self) -> FileBrowserClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"User-Agent": USER_AGENT, "Accept": "*/*"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"X-Auth": self.token, "Cookie": f"auth={self.token}"}

    def _raise_for_status(self, response: httpx.Response, context: str) -> None:
        """Map a non-success response onto the exception hierarchy.

        Args:
            response: Received response (body must be loaded)
            context: Short description of the operation for the message
        """
        status_code = response.status_code
        if 200 <= status_code < 300:
            return

        body = response.text.strip()
        if status_code == 404:
            raise FileBrowserNotFoundError(
                f"{context}: not found (404)", status_code=404, body=body
            )
        if status_code in (401, 403):
            raise FileBrowserAuthenticationError(
                f"{context}: access denied ({status_code})",
                status_code=status_code,
                body=body,
            )
        message = f"{context}: API error {status_code}"
        if body:
            message = f"{message}: {body}"
        raise FileBrowserAPIError(message, status_code=status_code, body=body)

    def _request(
        self,
        method: str,
        endpoint: str,
        context: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and check its status.

        Args:
            method: HTTP method
            endpoint: Path below the server URL, already encoded
            context: Operation description used in error messages
            headers: Extra request headers
            **kwargs: Additional arguments passed to httpx

        Returns:
            The successful response

        Raises:
            FileBrowserNetworkError: If the server cannot be reached
            FileBrowserAPIError: For non-2xx responses
        """
        url = f"{self.url}{endpoint}"
        request_headers = self._auth_headers()
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {endpoint}")
        try:
            response = self._get_client().request(
                method, url, headers=request_headers, **kwargs
            )
        except httpx.RequestError as e:
            raise FileBrowserNetworkError(f"Network error: {e}") from e

        self._raise_for_status(response, context)
        return response

    def _request_json(self, endpoint: str, context: str) -> Any:
        response = self._request("GET", endpoint, context)
        try:
            return response.json()
        except ValueError as e:
            raise FileBrowserInvalidResponseError(
                f"{context}: invalid JSON response from server"
            ) from e

    # =========================
    # Authentication
    # =========================

    def login(self) -> str:
        """Log in and store the returned token on the client.

        Returns:
            The auth token

        Raises:
            FileBrowserConfigError: If username or password is missing
            FileBrowserAuthenticationError: If the server rejects the login
        """
        if not self.username or self.password is None:
            raise FileBrowserConfigError("Username and password are required")

        try:
            response = self._request(
                "POST",
                "/api/login",
                "Login",
                json={"username": self.username, "password": self.password},
            )
        except FileBrowserAPIError as e:
            if isinstance(e, FileBrowserAuthenticationError):
                raise
            raise FileBrowserAuthenticationError(
                f"Login failed: HTTP {e.status_code}: {e.body}",
                status_code=e.status_code,
                body=e.body,
            ) from e

        self.token = response.text.strip()
        logger.debug("Login successful")
        return self.token

    # =========================
    # Resource Operations
    # =========================

    def get_resource(self, remote_path: str) -> RemoteNode:
        """Fetch a remote path and resolve it to a file or directory.

        Args:
            remote_path: Remote path

        Returns:
            RemoteDirectory (with de-duplicated items) or RemoteFileResource

        Raises:
            FileBrowserNotFoundError: If the path does not exist
            FileBrowserInvalidResponseError: For an unexpected response shape
        """
        path = normalize_remote_path(remote_path)
        data = self._request_json(
            "/api/resources" + encode_path(path), f"Stat '{path}'"
        )
        return parse_resource(data, path)

    def list_directory(self, remote_path: str) -> list[FileItem]:
        """List one level of a remote directory.

        Duplicate names are collapsed (see ``models.deduplicate_items``).

        Args:
            remote_path: Remote directory path

        Returns:
            List of FileItem in server order

        Raises:
            FileBrowserNotFoundError: If the directory does not exist
            FileBrowserInvalidResponseError: If the path is not a directory
        """
        node = self.get_resource(remote_path)
        if not isinstance(node, RemoteDirectory):
            raise FileBrowserInvalidResponseError(
                f"Failed to decode directory listing for '{node.path}': "
                "path is a file"
            )
        return node.items

    def is_directory(self, remote_path: str) -> bool:
        """Check whether a remote path is a directory."""
        return self.get_resource(remote_path).is_dir

    def create_directory(self, remote_path: str) -> None:
        """Create a remote directory.

        An already existing directory is not an error.

        Args:
            remote_path: Directory path to create

        Raises:
            ValueError: If the path is empty or the root
        """
        encoded = encode_segments(remote_path)
        if not encoded:
            raise ValueError("Cannot create root directory.")

        try:
            self._request(
                "POST",
                f"/api/resources{encoded}/?override=false",
                f"Directory creation failed for '{remote_path}'",
                headers={
                    "Content-Type": "text/plain; charset=UTF-8",
                    "Origin": self.url,
                    "Referer": f"{self.url}/files/",
                },
                content=b"",
            )
        except FileBrowserAPIError as e:
            if e.status_code == 409:
                logger.debug(f"Directory already exists: {remote_path}")
                return
            raise

    def delete(self, remote_path: str) -> None:
        """Delete a remote file or directory (directories recursively).

        Raises:
            ValueError: If the path is empty or the root
        """
        path = normalize_remote_path(remote_path)
        if path == "/":
            raise ValueError("Refusing to delete the root directory.")
        self._request(
            "DELETE", "/api/resources" + encode_path(path), f"Delete '{path}'"
        )

    def rename(self, old_path: str, new_path: str) -> None:
        """Rename or move a remote file or directory."""
        old = encode_path(old_path)
        new = quote(normalize_remote_path(new_path), safe="/")
        self._request(
            "PATCH",
            f"/api/resources{old}?action=rename&destination={new}"
            "&override=false&rename=false",
            f"Rename '{old_path}'",
        )

    def get_checksum(self, remote_path: str, algorithm: str = "sha256") -> str:
        """Fetch a checksum computed by the server.

        Args:
            remote_path: Remote file path
            algorithm: Checksum algorithm understood by the server

        Returns:
            Hex digest string ("" if the server omitted it)
        """
        path = normalize_remote_path(remote_path)
        data = self._request_json(
            f"/api/resources{encode_path(path)}?checksum={algorithm}",
            f"Checksum '{path}'",
        )
        if not isinstance(data, dict):
            raise FileBrowserInvalidResponseError(
                "Failed to decode checksum response"
            )
        checksums = data.get("checksums") or {}
        if not isinstance(checksums, dict):
            raise FileBrowserInvalidResponseError(
                "Failed to decode checksum response"
            )
        return str(checksums.get(algorithm) or "")

    # =========================
    # Transfer Operations
    # =========================

    def upload_file(
        self,
        file_path: Path,
        remote_dir: str,
        filename: str | None = None,
    ) -> None:
        """Upload a local file into a remote directory, overwriting.

        If the server reports the directory missing (404), the directory is
        created and the upload retried once.

        Args:
            file_path: Local file to upload
            remote_dir: Destination directory
            filename: Remote file name (defaults to the local name)

        Raises:
            FileBrowserLocalIOError: If the local file cannot be read
        """
        name = filename or file_path.name
        endpoint = (
            f"/api/resources{encode_segments(remote_dir)}/"
            f"{encode_segments(name).lstrip('/')}?override=true"
        )
        context = f"Upload '{file_path}'"
        headers = {"Content-Type": "application/octet-stream"}

        try:
            with open(file_path, "rb") as f:
                try:
                    self._request("POST", endpoint, context, headers, content=f)
                except FileBrowserNotFoundError:
                    logger.debug(f"Remote directory {remote_dir} missing, creating")
                    self.create_directory(remote_dir)
                    f.seek(0)
                    self._request("POST", endpoint, context, headers, content=f)
        except OSError as e:
            raise FileBrowserLocalIOError(f"Cannot read {file_path}: {e}") from e

    def download_file(
        self,
        remote_path: str,
        output_path: Path,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> Path:
        """Download a remote file to a local path.

        Args:
            remote_path: Remote file path
            output_path: Local destination (parent directories are created)
            progress_callback: Optional callback function(bytes_downloaded,
                total_bytes)

        Returns:
            Path where the file was saved
        """
        path = normalize_remote_path(remote_path)
        url = f"{self.url}/api/raw{encode_path(path)}"
        client = self._get_client()
        logger.debug(f"GET /api/raw{encode_path(path)} -> {output_path}")

        try:
            with client.stream("GET", url, headers=self._auth_headers()) as response:
                if response.status_code != 200:
                    response.read()
                    self._raise_for_status(response, f"Download '{path}'")
                    raise FileBrowserAPIError(
                        f"Download '{path}' failed: HTTP {response.status_code}",
                        status_code=response.status_code,
                    )

                total_size = int(response.headers.get("Content-Length", 0))
                bytes_downloaded = 0
                output_path.parent.mkdir(parents=True, exist_ok=True)
                with open(output_path, "wb") as f:
                    for chunk in response.iter_bytes(chunk_size=IO_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            bytes_downloaded += len(chunk)
                            if progress_callback:
                                progress_callback(bytes_downloaded, total_size)
        except httpx.RequestError as e:
            raise FileBrowserNetworkError(f"Network error during download: {e}") from e
        except OSError as e:
            raise FileBrowserLocalIOError(
                f"Error saving downloaded file {output_path}: {e}"
            ) from e

        return output_path

