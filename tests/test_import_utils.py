"""Tests for import data parsing and format detection."""

import pytest

from arc_data.exceptions import ImportFormatError, ImportParseError
from arc_data.models.export import ExportObject, ImportFormat
from arc_data.utils.import_utils import (
    classify_import,
    is_arc_file,
    is_old_import,
    is_postman,
    is_single_request,
    prepare_import_object,
)


class TestPrepareImportObject:
    """Test JSON parsing of import data."""

    def test_parses_string(self):
        assert prepare_import_object('{"kind": "ARC#Import"}') == {"kind": "ARC#Import"}

    def test_parses_bytes(self):
        assert prepare_import_object(b'{"requests": []}') == {"requests": []}

    def test_returns_parsed_value(self):
        data = {"requests": []}

        assert prepare_import_object(data) is data

    def test_invalid_json(self):
        with pytest.raises(ImportParseError, match="Not a JSON"):
            prepare_import_object("{not json")


class TestPredicates:
    """Test format predicates are total over JSON values."""

    @pytest.mark.parametrize("value", [None, [], "text", 1, 2.5, True])
    def test_non_objects_never_match(self, value):
        assert is_postman(value) is False
        assert is_arc_file(value) is False
        assert is_old_import(value) is False

    def test_old_import(self):
        data = {"headers": "", "url": "http://mulesoft.com", "method": "GET"}

        assert is_old_import(data) is True
        assert is_arc_file(data) is True

    def test_old_import_with_requests_is_not_single(self):
        data = {"headers": "", "url": "", "method": "GET", "requests": []}

        assert is_old_import(data) is False

    def test_postman_markers(self):
        assert is_postman({"version": 1, "collections": []}) is True
        assert is_postman({"info": {"schema": "x"}}) is True
        assert is_postman({"folders": [], "requests": []}) is True
        assert is_postman({"_postman_variable_scope": "environment"}) is True
        assert is_postman({"requests": []}) is False


class TestClassifyImport:
    """Test format classification."""

    def test_postman_backup(self):
        assert classify_import({"version": 1, "collections": []}) == ImportFormat.POSTMAN_BACKUP

    def test_postman_v2(self):
        data = {"info": {"schema": "https://schema.getpostman.com/json/collection/v2.0.0/"}}

        assert classify_import(data) == ImportFormat.POSTMAN_V2

    def test_postman_v21(self):
        data = {"info": {"schema": "https://schema.getpostman.com/json/collection/v2.1.0/"}}

        assert classify_import(data) == ImportFormat.POSTMAN_V21

    def test_postman_unknown_schema(self):
        with pytest.raises(ImportFormatError):
            classify_import({"info": {"schema": "https://example.com/v9.0.0/"}})

    def test_postman_v1(self):
        assert classify_import({"folders": [], "requests": []}) == ImportFormat.POSTMAN_V1

    def test_postman_environment(self):
        data = {"_postman_variable_scope": "environment", "values": []}

        assert classify_import(data) == ImportFormat.POSTMAN_ENVIRONMENT

    def test_postman_globals_not_supported(self):
        with pytest.raises(ImportFormatError):
            classify_import({"_postman_variable_scope": "globals", "values": []})

    def test_arc_pouch(self):
        assert classify_import({"kind": "ARC#AllDataExport"}) == ImportFormat.ARC_POUCH
        assert classify_import({"kind": "ARC#Import"}) == ImportFormat.ARC_POUCH

    def test_arc_dexie(self):
        assert classify_import({"kind": "ARC#requestsDataExport"}) == ImportFormat.ARC_DEXIE

    def test_arc_legacy_without_kind(self):
        assert classify_import({"requests": [], "projects": []}) == ImportFormat.ARC_LEGACY

    def test_arc_hyphenated_collection(self):
        assert classify_import({"url-history": []}) == ImportFormat.ARC_LEGACY

    def test_arc_unknown_kind_is_legacy(self):
        assert classify_import({"kind": "ARC#Something"}) == ImportFormat.ARC_LEGACY

    def test_single_request(self):
        data = {"headers": "", "url": "http://mulesoft.com", "method": "GET"}

        assert classify_import(data) == ImportFormat.ARC_LEGACY

    @pytest.mark.parametrize("value", [{}, {"name": "x"}, [], "text", None])
    def test_unknown(self, value):
        with pytest.raises(ImportFormatError, match="File not recognized"):
            classify_import(value)


class TestIsSingleRequest:
    """Test single request detection on normalized data."""

    def test_single_request(self):
        assert is_single_request(ExportObject(requests=[{"key": "a"}], projects=[])) is True

    def test_two_requests(self):
        assert is_single_request(ExportObject(requests=[{"key": "a"}, {"key": "b"}])) is False

    def test_request_with_project(self):
        export = ExportObject(requests=[{"key": "a"}], projects=[{"key": "p"}])

        assert is_single_request(export) is False

    def test_no_requests(self):
        assert is_single_request(ExportObject()) is False
