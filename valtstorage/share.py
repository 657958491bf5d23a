"""Share links: identifier extraction, scan page URLs and download filenames."""

import re
from pathlib import PurePosixPath, PureWindowsPath
from typing import Optional

from valtstorage.errors import ValidationError

SHARE_BASE_URL = "https://valtstorage.cloud/share"
SCAN_BASE_URL = "https://valtstorage.cloud/valt.scan"

ID_PREFIX = "V"
ID_MIN_LENGTH = 9

_DISPOSITION_FILENAME = re.compile(r"filename[^;=\n]*=((['\"]).*?\2|[^;\n]*)")


def is_share_id(value: str) -> bool:
    """True when ``value`` already looks like a bare share identifier."""
    return value.startswith(ID_PREFIX) and len(value) >= ID_MIN_LENGTH and "/" not in value


def extract_id(value: Optional[str]) -> str:
    """
    Normalize a share URL or bare identifier to the identifier.

    ``https://valtstorage.cloud/share/V1234ABCD/`` and ``V1234ABCD`` both give
    ``V1234ABCD``.

    Raises:
        ValidationError: If nothing usable is left.
    """
    if not value:
        raise ValidationError("Invalid share URL format")

    value = value.strip()
    if is_share_id(value):
        return value

    if value.endswith("/"):
        value = value[:-1]
    share_id = value.split("/")[-1]
    if not share_id:
        raise ValidationError("Invalid share URL format")
    return share_id


def share_url(share_id: str) -> str:
    return f"{SHARE_BASE_URL}/{share_id}"


def scan_url(reference: str) -> str:
    """URL of the valt.scan explorer page for a share URL or identifier."""
    return f"{SCAN_BASE_URL}?address={extract_id(reference)}"


def filename_from_disposition(disposition: Optional[str]) -> Optional[str]:
    """Pull the filename out of a Content-Disposition header.

    Directory components are dropped so a server cannot write outside the
    download directory.
    """
    if not disposition:
        return None
    match = _DISPOSITION_FILENAME.search(disposition)
    if not match or not match.group(1):
        return None
    name = match.group(1).replace('"', "").replace("'", "").strip()
    name = PureWindowsPath(PurePosixPath(name).name).name
    if name in ("", ".", ".."):
        return None
    return name
