# server/core/storage.py

import posixpath
import secrets
import time
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import dropbox
import structlog
from dropbox.exceptions import ApiError, DropboxException
from dropbox.files import WriteMode
from dropbox.sharing import CreateSharedLinkWithSettingsError

from errors import PayloadTooLarge, UploadFailed


logger = structlog.get_logger(__name__)


# -------------------------------
# Upload Limits & Link Format
# -------------------------------

MAX_UPLOAD_SIZE = 70 * 1024 * 1024

RAW_CONTENT_HOST = "dl.dropboxusercontent.com"
VIEWER_HOSTS = {"www.dropbox.com", "dropbox.com"}


def check_upload_size(size: int):
    if size > MAX_UPLOAD_SIZE:
        raise PayloadTooLarge("File size exceeds 70MB limit")


def build_upload_path(filename: str | None) -> str:
    """
    Returns a Dropbox path unique across uploads: a nanosecond timestamp and
    a random suffix in front of the original file name (directories dropped).
    """
    name = posixpath.basename((filename or "").replace("\\", "/")) or "upload"
    return f"/{time.time_ns()}-{secrets.token_hex(4)}-{name}"


def normalize_shared_link(url: str) -> str:
    """
    Rewrites a Dropbox preview link into its direct-download form.
    Applying it to an already normalized link returns the link unchanged.
    """
    parts = urlsplit(url)
    netloc = RAW_CONTENT_HOST if parts.netloc.lower() in VIEWER_HOSTS else parts.netloc
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in ("dl", "raw")
    ]
    query.append(("raw", "1"))
    return urlunsplit((parts.scheme, netloc, parts.path, urlencode(query), parts.fragment))


# -------------------------------
# Dropbox Image Store
# -------------------------------

class DropboxImageStore:
    """
    Stores uploaded images in Dropbox and resolves each one to a public
    direct-download URL.
    """

    def __init__(self, client: dropbox.Dropbox):
        self.client = client

    @classmethod
    def from_token(cls, access_token: str) -> "DropboxImageStore":
        return cls(dropbox.Dropbox(oauth2_access_token=access_token))

    def upload_image(self, contents: bytes, filename: str | None) -> str:
        check_upload_size(len(contents))
        path = build_upload_path(filename)

        try:
            metadata = self.client.files_upload(contents, path, mode=WriteMode.add, autorename=False)
        except DropboxException as e:
            logger.warning("dropbox_upload_failed", path=path, error=str(e))
            raise UploadFailed(f"Image upload failed: {e}")

        shared_link = self._shared_link(metadata.path_display)
        url = normalize_shared_link(shared_link)
        logger.info("image_uploaded", path=metadata.path_display, size=len(contents), url=url)
        return url

    def _shared_link(self, path: str) -> str:
        try:
            return self.client.sharing_create_shared_link_with_settings(path).url
        except ApiError as e:
            if not _link_already_exists(e):
                logger.warning("dropbox_share_failed", path=path, error=str(e))
                raise UploadFailed(f"Could not create shared link: {e}")
        except DropboxException as e:
            logger.warning("dropbox_share_failed", path=path, error=str(e))
            raise UploadFailed(f"Could not create shared link: {e}")

        try:
            links = self.client.sharing_list_shared_links(path=path, direct_only=True).links
        except DropboxException as e:
            raise UploadFailed(f"Could not list shared links: {e}")
        if not links:
            raise UploadFailed(f"No shared link found for {path}")
        return links[0].url

    def close(self):
        self.client.close()


def _link_already_exists(error: ApiError) -> bool:
    reason = error.error
    return isinstance(reason, CreateSharedLinkWithSettingsError) and reason.is_shared_link_already_exists()
