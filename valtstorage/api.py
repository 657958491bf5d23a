"""
ValtStorage API client.

Wraps the public API (upload, download, file info, blockchain record). In demo
mode every call returns fabricated data after a short pause and no request is
made.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Union

import requests

from valtstorage import __version__
from valtstorage.config import Settings
from valtstorage.errors import TransportError, ValidationError
from valtstorage.log import get_logger
from valtstorage.share import extract_id, filename_from_disposition, share_url

logger = get_logger(__name__)

CHUNK_SIZE = 8192

DEMO_EXPIRY = timedelta(hours=2)
DEMO_FILE_SIZE = 1024 * 1024 * 2

# Simulated round-trip times in demo mode (seconds)
DEMO_LATENCY = {
    "upload": 2.0,
    "download": 1.5,
    "info": 1.0,
    "record": 1.2,
}

MIME_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".txt": "text/plain",
    ".doc": "application/msword",
    ".docx": "application/msword",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(path: Union[str, Path]) -> str:
    return MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class DownloadStream:
    """A file coming down from the API, consumed chunk by chunk."""

    share_id: str
    filename: Optional[str]
    content_type: str
    chunks: Iterable[bytes]
    _close: Optional[Callable[[], None]] = field(default=None, repr=False)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.chunks)

    def close(self) -> None:
        if self._close is not None:
            self._close()


class ValtStorageClient:
    """An API client for the ValtStorage public API."""

    def __init__(self, settings: Settings, simulate_latency: bool = True):
        self.settings = settings
        self.base_url = settings.api_base_url.rstrip("/")
        self.timeout = settings.timeout
        self.simulate_latency = simulate_latency
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": f"ValtStorageCLI/{__version__}",
            "Accept": "application/json",
        })

    @property
    def is_demo(self) -> bool:
        return self.settings.is_demo

    def _pause(self, operation: str) -> None:
        if self.simulate_latency:
            time.sleep(DEMO_LATENCY[operation])

    def _request(self, label: str, method: str, endpoint: str, **kwargs) -> requests.Response:
        """Send one request; every failure comes back as a TransportError."""
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.debug(f"{method} {url} returned {status}")
            raise TransportError(f"{label}: Server returned {status}", status_code=status) from e
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.debug(f"{method} {url} got no response: {e}")
            raise TransportError(f"{label}: No response received from server") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{label}: {e}") from e

    def _json(self, label: str, response: requests.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{label}: Server sent an invalid response") from e

    def upload_file(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        """Upload a file and return the share details."""
        if not file_path or not isinstance(file_path, (str, Path)):
            raise ValidationError("Invalid file path")
        path = Path(file_path)
        if not path.is_file():
            raise ValidationError(f"File not found: {file_path}")

        if self.is_demo:
            self._pause("upload")
            suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=8))
            return {
                "success": True,
                "share_url": share_url(f"V{suffix}"),
                "expires_at": _iso(datetime.now(timezone.utc) + DEMO_EXPIRY),
                "files": [{
                    "name": path.name,
                    "size": path.stat().st_size,
                    "mime_type": guess_mime_type(path),
                }],
                "optimization_level": "Lightning Fast",
            }

        try:
            f = path.open("rb")
        except OSError as e:
            raise ValidationError(f"Cannot read file: {file_path}") from e
        with f:
            response = self._request(
                "Upload failed", "POST", "/upload",
                files={"file": (path.name, f, guess_mime_type(path))},
            )
        return self._json("Upload failed", response)

    def download_file(self, reference: str) -> DownloadStream:
        """Start downloading the file behind a share URL or identifier."""
        share_id = extract_id(reference)

        if self.is_demo:
            self._pause("download")
            body = (
                f"ValtStorage demo download\n"
                f"Share: {share_url(share_id)}\n"
                f"Retrieved: {_iso(datetime.now(timezone.utc))}\n"
            ).encode("utf-8")
            return DownloadStream(
                share_id=share_id,
                filename=f"valtstorage-{share_id}-sample.txt",
                content_type="text/plain",
                chunks=[body],
            )

        response = self._request(
            "Download failed", "GET", f"/download-zip/{share_id}", stream=True
        )
        return DownloadStream(
            share_id=share_id,
            filename=filename_from_disposition(response.headers.get("Content-Disposition")),
            content_type=response.headers.get("Content-Type", DEFAULT_MIME_TYPE),
            chunks=self._stream_chunks(response),
            _close=response.close,
        )

    def _stream_chunks(self, response: requests.Response) -> Iterator[bytes]:
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    yield chunk
        except requests.exceptions.RequestException as e:
            raise TransportError("Download failed: Connection lost during transfer") from e

    def get_file_info(self, reference: str) -> Dict[str, Any]:
        """Metadata for a shared file."""
        share_id = extract_id(reference)

        if self.is_demo:
            self._pause("info")
            return {
                "share_url": share_url(share_id),
                "expires_at": _iso(datetime.now(timezone.utc) + DEMO_EXPIRY),
                "files": [{
                    "name": f"document-{share_id}.pdf",
                    "size": DEMO_FILE_SIZE,
                    "mime_type": "application/pdf",
                }],
            }

        label = "Failed to get file info"
        return self._json(label, self._request(label, "GET", f"/get/{share_id}"))

    def get_blockchain_record(self, reference: str) -> Dict[str, Any]:
        """The blockchain record (upload and access transactions) of a share."""
        share_id = extract_id(reference)

        if self.is_demo:
            self._pause("record")
            return _demo_record(share_id)

        label = "Failed to get blockchain record"
        return self._json(label, self._request(label, "GET", f"/blockchain/{share_id}"))


def _demo_record(share_id: str) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    accessed = now + timedelta(minutes=1)
    stamp = int(now.timestamp())
    return {
        "record_id": share_id,
        "file_name": "Block data",
        "file_size": DEMO_FILE_SIZE,
        "file_type": "application/pdf",
        "upload_date": _iso(now),
        "expiry_date": _iso(now + DEMO_EXPIRY),
        "status": "active",
        "download_count": random.randint(0, 4),
        "transaction_count": random.randint(1, 10),
        "is_verified": True,
        "expires_in": "2 hours",
        "processed_streaming": False,
        "optimization_level": "Lightning Fast",
        "transactions": [
            {
                "id": f"tx_upload_{stamp}",
                "transaction_type": "FileUpload",
                "timestamp": _iso(now),
                "details": {
                    "file_id": share_id,
                    "file_name": "Block data",
                    "file_size": DEMO_FILE_SIZE,
                    "file_type": "application/pdf",
                    "processed_streaming": False,
                },
                "confirmed": True,
            },
            {
                "id": f"tx_access_{stamp + 60}",
                "transaction_type": "AccessAttempt",
                "timestamp": _iso(accessed),
                "details": {
                    "timestamp": _iso(accessed),
                    "action": "view_info",
                    "client_info": "Access from file info page",
                },
                "confirmed": True,
            },
        ],
    }
