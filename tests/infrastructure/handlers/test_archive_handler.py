import hashlib

import pytest
from unittest.mock import Mock

from sakuracloud_plugin.domain.core.exceptions import ResourceOperationError
from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.infrastructure.exceptions import UploadError
from sakuracloud_plugin.infrastructure.handlers.resources.archive_handler import ArchiveHandler
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import ResourceNotFoundError

FTP_SERVER = {"HostName": "ftp.example.jp", "User": "user", "Password": "pass"}


@pytest.fixture
def archive_file(tmp_path):
    path = tmp_path / "disk.img"
    path.write_bytes(b"archive content")
    return path


@pytest.fixture
def handler(client):
    handler = ArchiveHandler(client)
    handler.archive_op = Mock()
    handler.uploader = Mock()
    handler.archive_op.open_ftp.return_value = FTP_SERVER
    handler.archive_op.read.return_value = {
        "ID": 100, "Name": "archive", "Description": "desc", "Tags": ["a"],
        "Icon": {"ID": 5}, "SizeMB": 20480,
    }
    return handler


def md5(path):
    return hashlib.md5(path.read_bytes()).hexdigest()


def test_create_uploads_file(handler, archive_file):
    handler.archive_op.create.return_value = {"ID": 100}
    data = ResourceData("sakuracloud_archive", config={
        "name": "archive", "size": 20, "archive_file": str(archive_file), "tags": ["a"], "icon_id": "5",
    })

    handler.create(data)

    zone, body = handler.archive_op.create.call_args.args
    assert zone == "is1b"
    assert body["SizeMB"] == 20480
    assert body["Icon"] == {"ID": 5}
    handler.archive_op.open_ftp.assert_called_once_with("is1b", "100")
    handler.uploader.upload.assert_called_once_with(FTP_SERVER, str(archive_file))
    handler.archive_op.close_ftp.assert_called_once_with("is1b", "100")

    attributes = data.to_dict()["attributes"]
    assert data.id == "100"
    assert attributes["size"] == 20
    assert attributes["icon_id"] == "5"
    assert attributes["hash"] == md5(archive_file)
    assert attributes["zone"] == "is1b"


def test_create_fails_for_missing_file(handler, tmp_path):
    data = ResourceData("sakuracloud_archive", config={
        "name": "archive", "size": 20, "archive_file": str(tmp_path / "missing.img"),
    })

    with pytest.raises(ResourceOperationError) as exc_info:
        handler.create(data)
    assert "Error opening archive_file" in str(exc_info.value)
    handler.archive_op.create.assert_not_called()


def test_create_reports_upload_failure(handler, archive_file):
    handler.archive_op.create.return_value = {"ID": 100}
    handler.uploader.upload.side_effect = UploadError("connection reset")
    data = ResourceData("sakuracloud_archive", config={
        "name": "archive", "size": 20, "archive_file": str(archive_file),
    })

    with pytest.raises(ResourceOperationError) as exc_info:
        handler.create(data)
    assert str(exc_info.value).startswith("Failed to upload SakuraCloud Archive resource")


def test_read_marks_missing_archive_absent(handler):
    handler.archive_op.read.side_effect = ResourceNotFoundError(404)
    data = ResourceData("sakuracloud_archive", resource_id="100", state={"name": "archive"})

    handler.read(data)

    assert data.id == ""


def test_update_skips_upload_when_content_unchanged(handler, archive_file):
    state = {"name": "archive", "archive_file": str(archive_file), "hash": md5(archive_file)}
    data = ResourceData("sakuracloud_archive", resource_id="100",
                        config={"name": "renamed", "archive_file": str(archive_file), "hash": None},
                        state=state)

    handler.update(data)

    handler.archive_op.update.assert_called_once_with("is1b", "100", {"Name": "renamed"})
    handler.uploader.upload.assert_not_called()


def test_update_uploads_changed_content(handler, archive_file):
    state = {"name": "archive", "archive_file": str(archive_file), "hash": "stale"}
    data = ResourceData("sakuracloud_archive", resource_id="100",
                        config={"name": "archive", "archive_file": str(archive_file)},
                        state=state)

    handler.update(data)

    handler.archive_op.update.assert_not_called()
    handler.uploader.upload.assert_called_once_with(FTP_SERVER, str(archive_file))


def test_delete(handler):
    data = ResourceData("sakuracloud_archive", resource_id="100", state={"zone": "tk1a"})

    handler.delete(data)

    handler.archive_op.delete.assert_called_once_with("tk1a", "100")
    assert data.id == ""
