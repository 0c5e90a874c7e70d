"""Unit tests for data models."""

import json

import pytest

from ffsync.exceptions import FFSyncConfigError, FFSyncStateError
from ffsync.models import CodeType, FileInfo, ProjectMetadata


class TestFileInfo:
    """Tests for FileInfo serialization and state."""

    def test_to_dict_omits_missing_checksums(self):
        record = FileInfo("fetchData", "fetchData", CodeType.ACTION)
        assert record.to_dict() == {
            "old_identifier_name": "fetchData",
            "new_identifier_name": "fetchData",
            "type": "A",
            "is_deleted": False,
        }

    def test_round_trip_through_dict(self):
        record = FileInfo(
            "FancyButton",
            "FancierButton",
            CodeType.WIDGET,
            is_deleted=True,
            original_checksum="aa",
            current_checksum="bb",
        )
        assert FileInfo.from_dict(record.to_dict()) == record

    def test_is_modified_and_renamed(self):
        record = FileInfo("a", "a", CodeType.ACTION, original_checksum="x", current_checksum="x")
        assert not record.is_modified
        assert not record.is_renamed
        record.current_checksum = "y"
        record.new_identifier_name = "b"
        assert record.is_modified
        assert record.is_renamed

    def test_new_record_counts_as_modified(self):
        """Test that a record without an original checksum is a change."""
        record = FileInfo("a", "a", CodeType.ACTION, current_checksum="x")
        assert record.is_modified

    def test_from_dict_unknown_type(self):
        data = {"old_identifier_name": "a", "new_identifier_name": "a", "type": "Z"}
        with pytest.raises(FFSyncStateError) as exc_info:
            FileInfo.from_dict(data)
        assert exc_info.value.raw_text == json.dumps(data)

    def test_from_dict_missing_field(self):
        with pytest.raises(FFSyncStateError):
            FileInfo.from_dict({"type": "A"})


class TestProjectMetadata:
    """Tests for ProjectMetadata.from_file."""

    def test_load(self, tmp_path):
        path = tmp_path / "ff_metadata.json"
        path.write_text('{"project_id": "proj-1", "branch_name": "dev"}')
        metadata = ProjectMetadata.from_file(path)
        assert metadata.project_id == "proj-1"
        assert metadata.branch_name == "dev"

    def test_missing_branch_defaults_to_main(self, tmp_path):
        path = tmp_path / "ff_metadata.json"
        path.write_text('{"project_id": "proj-1"}')
        assert ProjectMetadata.from_file(path).branch_name == ""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FFSyncConfigError, match="No ff_metadata.json"):
            ProjectMetadata.from_file(tmp_path / "ff_metadata.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "ff_metadata.json"
        path.write_text("{not json")
        with pytest.raises(FFSyncConfigError, match="Invalid project metadata"):
            ProjectMetadata.from_file(path)

    def test_missing_project_id(self, tmp_path):
        path = tmp_path / "ff_metadata.json"
        path.write_text('{"branch_name": "dev"}')
        with pytest.raises(FFSyncConfigError, match="no project_id"):
            ProjectMetadata.from_file(path)
