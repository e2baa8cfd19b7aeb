from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from dropbox.exceptions import ApiError
from dropbox.sharing import CreateSharedLinkWithSettingsError

from core.storage import (
    MAX_UPLOAD_SIZE,
    DropboxImageStore,
    build_upload_path,
    check_upload_size,
    normalize_shared_link,
)
from errors import PayloadTooLarge, UploadFailed


def _api_error(reason):
    return ApiError("req-1", reason, None, None)


@pytest.fixture
def dropbox_client():
    client = MagicMock()
    client.files_upload.side_effect = lambda contents, path, **kwargs: SimpleNamespace(path_display=path)
    client.sharing_create_shared_link_with_settings.return_value = SimpleNamespace(
        url="https://www.dropbox.com/s/abc123/photo.png?dl=0"
    )
    return client


# -------------------------------
# Link normalization
# -------------------------------

def test_normalize_legacy_link():
    url = normalize_shared_link("https://www.dropbox.com/s/abc123/photo.png?dl=0")

    assert url == "https://dl.dropboxusercontent.com/s/abc123/photo.png?raw=1"


def test_normalize_keeps_other_query_parameters():
    url = normalize_shared_link("https://www.dropbox.com/scl/fi/xyz/photo.png?rlkey=k1&dl=0")

    assert url == "https://dl.dropboxusercontent.com/scl/fi/xyz/photo.png?rlkey=k1&raw=1"


@pytest.mark.parametrize("link", [
    "https://www.dropbox.com/s/abc123/photo.png?dl=0",
    "https://www.dropbox.com/scl/fi/xyz/photo.png?rlkey=k1&dl=0",
    "https://dl.dropboxusercontent.com/s/abc123/photo.png?raw=1",
])
def test_normalize_is_idempotent(link):
    once = normalize_shared_link(link)

    assert normalize_shared_link(once) == once


# -------------------------------
# Paths & limits
# -------------------------------

def test_upload_paths_are_unique_and_drop_directories():
    paths = {build_upload_path("../secret/photo.png") for _ in range(200)}

    assert len(paths) == 200
    for path in paths:
        assert path.startswith("/")
        assert path.endswith("-photo.png")
        assert path.count("/") == 1


def test_upload_path_without_filename():
    assert build_upload_path(None).endswith("-upload")


def test_size_limit_boundary():
    check_upload_size(MAX_UPLOAD_SIZE)

    with pytest.raises(PayloadTooLarge):
        check_upload_size(MAX_UPLOAD_SIZE + 1)


# -------------------------------
# Dropbox store
# -------------------------------

def test_upload_returns_direct_download_url(dropbox_client):
    store = DropboxImageStore(dropbox_client)

    url = store.upload_image(b"x", "photo.png")

    assert url == "https://dl.dropboxusercontent.com/s/abc123/photo.png?raw=1"
    contents, path = dropbox_client.files_upload.call_args.args
    assert contents == b"x"
    assert path.endswith("-photo.png")
    dropbox_client.sharing_create_shared_link_with_settings.assert_called_once_with(path)


def test_existing_shared_link_is_reused(dropbox_client):
    dropbox_client.sharing_create_shared_link_with_settings.side_effect = _api_error(
        CreateSharedLinkWithSettingsError("shared_link_already_exists", None)
    )
    dropbox_client.sharing_list_shared_links.return_value = SimpleNamespace(links=[
        SimpleNamespace(url="https://www.dropbox.com/s/first/photo.png?dl=0"),
        SimpleNamespace(url="https://www.dropbox.com/s/second/photo.png?dl=0"),
    ])
    store = DropboxImageStore(dropbox_client)

    url = store.upload_image(b"x", "photo.png")

    assert url == "https://dl.dropboxusercontent.com/s/first/photo.png?raw=1"
    assert dropbox_client.sharing_list_shared_links.call_args.kwargs["direct_only"] is True


def test_existing_link_fallback_without_links_fails(dropbox_client):
    dropbox_client.sharing_create_shared_link_with_settings.side_effect = _api_error(
        CreateSharedLinkWithSettingsError("shared_link_already_exists", None)
    )
    dropbox_client.sharing_list_shared_links.return_value = SimpleNamespace(links=[])
    store = DropboxImageStore(dropbox_client)

    with pytest.raises(UploadFailed):
        store.upload_image(b"x", "photo.png")


def test_other_sharing_errors_propagate(dropbox_client):
    dropbox_client.sharing_create_shared_link_with_settings.side_effect = _api_error(
        CreateSharedLinkWithSettingsError.email_not_verified
    )
    store = DropboxImageStore(dropbox_client)

    with pytest.raises(UploadFailed):
        store.upload_image(b"x", "photo.png")
    dropbox_client.sharing_list_shared_links.assert_not_called()


def test_failed_upload_skips_sharing(dropbox_client):
    dropbox_client.files_upload.side_effect = _api_error("path/conflict")
    store = DropboxImageStore(dropbox_client)

    with pytest.raises(UploadFailed):
        store.upload_image(b"x", "photo.png")
    dropbox_client.sharing_create_shared_link_with_settings.assert_not_called()


def test_oversized_payload_is_never_uploaded(dropbox_client):
    store = DropboxImageStore(dropbox_client)

    with pytest.raises(PayloadTooLarge):
        store.upload_image(b"\0" * (MAX_UPLOAD_SIZE + 1), "big.png")
    dropbox_client.files_upload.assert_not_called()


def test_payload_of_exactly_the_limit_is_uploaded(dropbox_client):
    store = DropboxImageStore(dropbox_client)

    store.upload_image(b"\0" * MAX_UPLOAD_SIZE, "big.png")

    dropbox_client.files_upload.assert_called_once()
