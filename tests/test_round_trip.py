"""Export then import through the whole pipeline."""

import json

import pytest

from arc_data.db.database import Database
from arc_data.db.repositories.document_repository import DocumentRepository
from arc_data.services.data_export_service import DataExportService
from arc_data.services.data_import_service import DataImportService


async def _seed(repository: DocumentRepository) -> None:
    """Store 100 saved requests spread over 50 projects."""
    projects = [
        {"_id": f"p{i:02d}", "name": f"Project {i}", "order": i, "requests": []}
        for i in range(50)
    ]
    requests = []
    for i in range(100):
        project = projects[i % 50]
        request_id = f"r{i:03d}"
        project["requests"].append(request_id)
        requests.append(
            {
                "_id": request_id,
                "name": f"Request {i}",
                "url": f"https://api.domain.com/{i}",
                "method": "GET",
                "projects": [project["_id"]],
                "created": 1450675637093,
                "updated": 1450675637093,
            }
        )
    await repository.bulk_write("legacy-projects", projects)
    await repository.bulk_write("saved-requests", requests)


class TestRoundTrip:
    """Test data survives an export and import."""

    @pytest.mark.asyncio
    async def test_requests_and_projects(
        self, repository: DocumentRepository, data_export_service: DataExportService
    ):
        """Test 100 requests and 50 projects are restored in a new store."""
        # Given: Exported requests and projects
        await _seed(repository)
        export = await data_export_service.create_export({"requests": True, "projects": True})
        content = json.dumps(export.to_dict())

        target_db = Database(database_path=":memory:")
        await target_db.connect()
        await target_db.migrate()
        try:
            target = DocumentRepository(target_db)
            service = DataImportService(target, batch_size=7)

            # When: Import the file into another store
            normalized = await service.normalize_import_data(content)
            report = await service.store_data(normalized)

            # Then: Everything is there with references intact
            assert report.errors is None
            assert len(report.indexes) == 100
            assert await target.count("saved-requests") == 100
            assert await target.count("legacy-projects") == 50
            request = await target.get("saved-requests", "r042")
            project = await target.get("legacy-projects", "p42")
            assert request["projects"] == ["p42"]
            assert project["requests"] == ["r042", "r092"]
            assert request["url"] == "https://api.domain.com/42"
        finally:
            await target_db.close()

    @pytest.mark.asyncio
    async def test_reimport_is_idempotent(
        self,
        repository: DocumentRepository,
        data_export_service: DataExportService,
        data_import_service: DataImportService,
    ):
        """Test importing an export into the store it came from."""
        await _seed(repository)
        export = await data_export_service.create_export({"requests": True})

        normalized = await data_import_service.normalize_import_data(export.to_dict())
        report = await data_import_service.store_data(normalized)

        assert report.errors is None
        assert await repository.count("saved-requests") == 100
        assert await repository.count("legacy-projects") == 50
        assert (await repository.get("saved-requests", "r007"))["_rev"].startswith("2-")

    @pytest.mark.asyncio
    async def test_certificates_history_and_variables(
        self,
        repository: DocumentRepository,
        data_export_service: DataExportService,
        data_import_service: DataImportService,
    ):
        """Test joined and derived data is split again on import."""
        # Given: A request using a certificate, history and variables
        await repository.put(
            "client-certificates",
            {"_id": "c1", "name": "cert", "type": "p12", "created": 1, "dataKey": "c1"},
        )
        await repository.put(
            "client-certificates-data",
            {"_id": "c1", "cert": {"data": "cert-data"}, "key": {"data": "key-data"}},
        )
        await repository.put(
            "saved-requests",
            {
                "_id": "r1",
                "url": "https://secure.domain.com",
                "authType": "client certificate",
                "auth": {"id": "c1"},
            },
        )
        await repository.put("history-requests", {"_id": "h1", "url": "https://domain.com"})
        await repository.put("variables", {"_id": "v1", "environment": "Prod", "variable": "host"})
        await repository.put("variables-environments", {"_id": "e1", "name": "prod"})
        export = await data_export_service.create_export(
            {"requests": True, "history": True, "variables": True}
        )
        dumped = export.to_dict()
        assert dumped["clientcertificates"][0]["pKey"] == {"data": "key-data"}
        assert dumped["variables"][0]["name"] == "host"

        # When: Import the export back after the certificate was removed
        data = await repository.get("client-certificates-data", "c1")
        await repository.delete("client-certificates-data", "c1", data["_rev"])
        normalized = await data_import_service.normalize_import_data(json.dumps(dumped))
        report = await data_import_service.store_data(normalized)

        # Then: Both certificate halves exist again
        assert report.errors is None
        assert {item.type for item in report.indexes} == {"saved", "history"}
        restored = await repository.get("client-certificates-data", "c1")
        assert restored["cert"] == {"data": "cert-data"}
        assert restored["key"] == {"data": "key-data"}
        assert (await repository.get("client-certificates", "c1"))["dataKey"] == "c1"
        assert await repository.count("variables-environments") == 1
