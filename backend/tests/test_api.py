"""
Integration Tests for the Richat Funding HTTP API

Runs the FastAPI app through TestClient with the database dependency
overridden and the service layer patched, so no database is needed.

Tests:
- /api/funding-opportunities CRUD, filters and error shapes
- /api/funding-statistics
- /api/applications aggregates, documents and required documents
- /api/clients
- health endpoints

Usage:
    cd backend && pytest tests/test_api.py -v
"""

import sys
import os
from datetime import datetime, timezone
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from richat_funding.deps import REQUIRED_DOCUMENTS, get_db, get_required_documents
from richat_funding.main import app
from richat_funding.models.db.application import Application, Document
from richat_funding.models.db.client import Client
from richat_funding.models.db.funding_opportunity import FundingOpportunity
from richat_funding.models.opportunity_models import FundingStatistics, OpportunityFilters
from richat_funding.security import limiter
from richat_funding.services.application_service import ApplicationService
from richat_funding.services.client_service import ClientService
from richat_funding.services.completeness import DEFAULT_REQUIRED_DOCUMENTS
from richat_funding.services.errors import ConflictError, NotFoundError
from richat_funding.services.opportunity_service import OpportunityService

NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================

def make_opportunity(opportunity_id: int = 1, **overrides) -> FundingOpportunity:
    values = dict(
        id=opportunity_id,
        title="GCF - Simplified Approval Process",
        funding_program="Guichet permanent du GCF",
        description="Processus d'approbation simplifié du GCF",
        eligibility_criteria="Organisations locales",
        required_documents="Statuts juridiques; Budget prévisionnel",
        external_link=None,
        deadline="Aucune - Ouvert en continu",
        min_amount=10000,
        max_amount=10000000,
        funding_type="Don",
        status="Ouvert",
        sectors=["Environnement", "Climat"],
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return FundingOpportunity(**values)


def make_client(client_id: int = 1, **overrides) -> Client:
    values = dict(
        id=client_id,
        organization_name="Association Verte Mauritanie",
        contact_person="Aminata Sow",
        email="aminata@vertmauritanie.org",
        phone="+222 45 67 89 01",
        address="Nouakchott, Mauritanie",
        legal_status="Association",
        structure_type="État",
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return Client(**values)


def make_document(document_id: int, document_type: str, application_id: int = 1) -> Document:
    return Document(
        id=document_id,
        application_id=application_id,
        document_type=document_type,
        file_name=f"doc_{document_id}.pdf",
        file_size=1000,
        file_type="pdf",
        upload_date=NOW,
        is_required=True,
        status="Soumis",
        created_at=NOW,
    )


def make_application(
    application_id: int = 1,
    status: str = "En attente de documents",
    completion_score: int = 35,
    doc_types: Optional[List[str]] = None,
) -> Application:
    doc_types = doc_types if doc_types is not None else [
        "Statuts juridiques",
        "Budget prévisionnel",
    ]
    return Application(
        id=application_id,
        client_id=1,
        funding_opportunity_id=1,
        client=make_client(),
        funding_opportunity=make_opportunity(),
        status=status,
        submission_date=NOW,
        assigned_consultant=None,
        completion_score=completion_score,
        notes="Dossier en cours de finalisation",
        documents=[
            make_document(i + 1, t, application_id) for i, t in enumerate(doc_types)
        ],
        created_at=NOW,
        updated_at=NOW,
    )


def make_opportunity_body(**overrides) -> dict:
    body = {
        "title": "GEF - Least Developed Countries Fund",
        "fundingProgram": "Fonds GEF",
        "description": "Fonds pour les pays les moins avancés",
        "eligibilityCriteria": "Pays moins avancés",
        "requiredDocuments": "Statuts juridiques; Preuves de cofinancement",
        "deadline": "Soumissions continues - Council 2 fois/an",
        "minAmount": 5000,
        "maxAmount": 50000000,
        "fundingType": "Don",
        "status": "Ouvert",
        "sectors": "Environnement, Développement",
    }
    body.update(overrides)
    return body


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def db_session():
    return MagicMock()


@pytest.fixture
def client(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    limiter.enabled = True


# ============================================================================
# HEALTH
# ============================================================================

class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_reports_database_flag(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert "databaseConfigured" in response.json()

    def test_security_headers_and_request_id(self, client):
        response = client.get("/")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers.get("X-Request-ID")

    def test_unknown_route_uses_message_shape(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert "message" in response.json()


# ============================================================================
# FUNDING OPPORTUNITIES
# ============================================================================

class TestListOpportunities:
    def test_returns_camel_case_records(self, client):
        with patch.object(
            OpportunityService,
            "list_opportunities",
            new=AsyncMock(return_value=[make_opportunity()]),
        ):
            response = client.get("/api/funding-opportunities")

        assert response.status_code == 200
        (record,) = response.json()
        assert record["fundingProgram"] == "Guichet permanent du GCF"
        assert record["isRolling"] is True
        assert record["deadlineDate"] is None
        assert record["requiredDocumentsList"] == ["Statuts juridiques", "Budget prévisionnel"]

    def test_query_string_becomes_filters(self, client):
        mock = AsyncMock(return_value=[])
        with patch.object(OpportunityService, "list_opportunities", new=mock):
            response = client.get(
                "/api/funding-opportunities",
                params={"sector": "Agriculture", "minAmount": "50000", "sortBy": "amount"},
            )

        assert response.status_code == 200
        filters = mock.await_args.args[1]
        assert filters.sector == "Agriculture"
        assert filters.min_amount == 50000
        assert filters.sort_by == "amount"

    def test_malformed_filters_fall_back_to_defaults(self, client):
        mock = AsyncMock(return_value=[])
        with patch.object(OpportunityService, "list_opportunities", new=mock):
            response = client.get(
                "/api/funding-opportunities",
                params={"sector": "Agriculture", "minAmount": "abc"},
            )

        assert response.status_code == 200
        assert response.json() == []
        assert mock.await_args.args[1] == OpportunityFilters()

    def test_storage_failure_is_generic_500(self, client):
        with patch.object(
            OpportunityService,
            "list_opportunities",
            new=AsyncMock(side_effect=RuntimeError("connection refused")),
        ):
            response = client.get("/api/funding-opportunities")

        assert response.status_code == 500
        assert "connection refused" not in response.json()["message"]


class TestGetOpportunity:
    def test_found(self, client):
        with patch.object(
            OpportunityService,
            "get_opportunity",
            new=AsyncMock(return_value=make_opportunity(8)),
        ):
            response = client.get("/api/funding-opportunities/8")

        assert response.status_code == 200
        assert response.json()["id"] == 8

    def test_missing_is_404(self, client):
        with patch.object(
            OpportunityService,
            "get_opportunity",
            new=AsyncMock(side_effect=NotFoundError("Funding opportunity", 99999)),
        ):
            response = client.get("/api/funding-opportunities/99999")

        assert response.status_code == 404
        assert response.json()["message"] == "Funding opportunity not found"


class TestCreateOpportunity:
    def test_created(self, client):
        mock = AsyncMock(return_value=make_opportunity(11, title="GEF - LDCF"))
        with patch.object(OpportunityService, "create_opportunity", new=mock):
            response = client.post("/api/funding-opportunities", json=make_opportunity_body())

        assert response.status_code == 201
        assert response.json()["id"] == 11
        sent = mock.await_args.args[1]
        assert sent.sectors == ["Environnement", "Développement"]

    def test_missing_title_is_400(self, client):
        body = make_opportunity_body()
        del body["title"]
        mock = AsyncMock()
        with patch.object(OpportunityService, "create_opportunity", new=mock):
            response = client.post("/api/funding-opportunities", json=body)

        assert response.status_code == 400
        payload = response.json()
        assert payload["message"] == "Invalid data"
        assert any("title" in err["loc"] for err in payload["errors"])
        mock.assert_not_awaited()

    def test_min_above_max_is_400(self, client):
        response = client.post(
            "/api/funding-opportunities",
            json=make_opportunity_body(minAmount=10, maxAmount=5),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid data"


class TestUpdateOpportunity:
    def test_partial_update(self, client):
        mock = AsyncMock(return_value=make_opportunity(3, status="Fermé"))
        with patch.object(OpportunityService, "update_opportunity", new=mock):
            response = client.put("/api/funding-opportunities/3", json={"status": "Fermé"})

        assert response.status_code == 200
        assert response.json()["status"] == "Fermé"
        assert mock.await_args.args[2].model_dump(exclude_unset=True) == {"status": "Fermé"}

    def test_missing_is_404(self, client):
        with patch.object(
            OpportunityService,
            "update_opportunity",
            new=AsyncMock(side_effect=NotFoundError("Funding opportunity", 42)),
        ):
            response = client.put("/api/funding-opportunities/42", json={"status": "Fermé"})

        assert response.status_code == 404


class TestDeleteOpportunity:
    def test_deleted(self, client):
        with patch.object(
            OpportunityService, "delete_opportunity", new=AsyncMock(return_value=None)
        ):
            response = client.delete("/api/funding-opportunities/3")

        assert response.status_code == 204
        assert response.content == b""

    def test_referenced_is_409(self, client):
        with patch.object(
            OpportunityService,
            "delete_opportunity",
            new=AsyncMock(side_effect=ConflictError("referenced by 2 application(s)")),
        ):
            response = client.delete("/api/funding-opportunities/3")

        assert response.status_code == 409
        assert "referenced" in response.json()["message"]

    def test_missing_is_404(self, client):
        with patch.object(
            OpportunityService,
            "delete_opportunity",
            new=AsyncMock(side_effect=NotFoundError("Funding opportunity", 3)),
        ):
            response = client.delete("/api/funding-opportunities/3")

        assert response.status_code == 404


class TestStatistics:
    def test_statistics_are_camel_case(self, client):
        stats = FundingStatistics(total_open=2, total_pending=1, total_amount=150000, this_week=3)
        with patch.object(
            OpportunityService, "get_statistics", new=AsyncMock(return_value=stats)
        ):
            response = client.get("/api/funding-statistics")

        assert response.status_code == 200
        assert response.json() == {
            "totalOpen": 2,
            "totalPending": 1,
            "totalAmount": 150000,
            "thisWeek": 3,
        }


# ============================================================================
# APPLICATIONS
# ============================================================================

class TestApplications:
    def test_list_embeds_relations_and_evaluation(self, client):
        mock = AsyncMock(return_value=[make_application()])
        with patch.object(ApplicationService, "list_applications", new=mock):
            response = client.get("/api/applications")

        assert response.status_code == 200
        (dossier,) = response.json()
        assert dossier["client"]["organizationName"] == "Association Verte Mauritanie"
        assert dossier["fundingOpportunity"]["title"] == "GCF - Simplified Approval Process"
        assert len(dossier["documents"]) == 2
        evaluation = dossier["evaluation"]
        assert len(evaluation["missingDocuments"]) == len(REQUIRED_DOCUMENTS) - 2
        assert evaluation["progressPct"] == 20
        assert evaluation["stars"] == 2
        assert evaluation["completionLabel"] == "Documents incomplets"
        assert evaluation["isComplete"] is False

    def test_list_passes_search_and_status(self, client):
        mock = AsyncMock(return_value=[])
        with patch.object(ApplicationService, "list_applications", new=mock):
            client.get("/api/applications", params={"search": "verte", "status": "Complet"})

        assert mock.await_args.kwargs == {"search": "verte", "status_filter": "Complet"}

    def test_status_all_means_no_filter(self, client):
        mock = AsyncMock(return_value=[])
        with patch.object(ApplicationService, "list_applications", new=mock):
            client.get("/api/applications", params={"status": "all"})

        assert mock.await_args.kwargs["status_filter"] is None

    def test_evaluation_uses_configured_catalog(self, client):
        app.dependency_overrides[get_required_documents] = lambda: (
            "Statuts juridiques",
            "Pitch deck",
        )
        with patch.object(
            ApplicationService,
            "get_application",
            new=AsyncMock(return_value=make_application()),
        ):
            response = client.get("/api/applications/1")

        assert response.status_code == 200
        assert response.json()["evaluation"]["missingDocuments"] == ["Pitch deck"]

    def test_get_missing_is_404(self, client):
        with patch.object(
            ApplicationService,
            "get_application",
            new=AsyncMock(side_effect=NotFoundError("Application", 5)),
        ):
            response = client.get("/api/applications/5")

        assert response.status_code == 404
        assert response.json()["message"] == "Application not found"

    def test_create_for_unknown_client_is_404(self, client):
        with patch.object(
            ApplicationService,
            "create_application",
            new=AsyncMock(side_effect=NotFoundError("Client", 99)),
        ):
            response = client.post(
                "/api/applications", json={"clientId": 99, "fundingOpportunityId": 1}
            )

        assert response.status_code == 404
        assert response.json()["message"] == "Client not found"

    def test_create(self, client):
        mock = AsyncMock(return_value=make_application(doc_types=[]))
        with patch.object(ApplicationService, "create_application", new=mock):
            response = client.post(
                "/api/applications", json={"clientId": 1, "fundingOpportunityId": 1}
            )

        assert response.status_code == 201
        assert response.json()["evaluation"]["missingDocuments"] == list(REQUIRED_DOCUMENTS)

    def test_update_score_out_of_range_is_400(self, client):
        response = client.put("/api/applications/1", json={"completionScore": 140})
        assert response.status_code == 400

    def test_delete(self, client):
        with patch.object(
            ApplicationService, "delete_application", new=AsyncMock(return_value=None)
        ):
            response = client.delete("/api/applications/1")

        assert response.status_code == 204


class TestDocuments:
    def test_list(self, client):
        docs = [make_document(1, "Annexes"), make_document(2, "Pitch deck")]
        with patch.object(
            ApplicationService, "list_documents", new=AsyncMock(return_value=docs)
        ):
            response = client.get("/api/applications/1/documents")

        assert response.status_code == 200
        assert [d["documentType"] for d in response.json()] == ["Annexes", "Pitch deck"]

    def test_create(self, client):
        mock = AsyncMock(return_value=make_document(3, "Annexes"))
        with patch.object(ApplicationService, "create_document", new=mock):
            response = client.post(
                "/api/applications/1/documents",
                json={"documentType": "Annexes", "fileName": "annexes.pdf"},
            )

        assert response.status_code == 201
        assert response.json()["fileName"] == "doc_3.pdf"

    def test_create_on_missing_application_is_404(self, client):
        with patch.object(
            ApplicationService,
            "create_document",
            new=AsyncMock(side_effect=NotFoundError("Application", 9)),
        ):
            response = client.post(
                "/api/applications/9/documents",
                json={"documentType": "Annexes", "fileName": "annexes.pdf"},
            )

        assert response.status_code == 404

    def test_delete_missing_is_404(self, client):
        with patch.object(
            ApplicationService,
            "delete_document",
            new=AsyncMock(side_effect=NotFoundError("Document", 9)),
        ):
            response = client.delete("/api/documents/9")

        assert response.status_code == 404
        assert response.json()["message"] == "Document not found"


class TestRequiredDocuments:
    def test_default_catalog(self, client):
        app.dependency_overrides[get_required_documents] = lambda: DEFAULT_REQUIRED_DOCUMENTS
        response = client.get("/api/required-documents")

        assert response.status_code == 200
        assert response.json() == {"documents": list(DEFAULT_REQUIRED_DOCUMENTS)}


# ============================================================================
# CLIENTS
# ============================================================================

class TestClients:
    def test_list(self, client):
        with patch.object(
            ClientService, "list_clients", new=AsyncMock(return_value=[make_client()])
        ):
            response = client.get("/api/clients")

        assert response.status_code == 200
        assert response.json()[0]["structureType"] == "État"

    def test_create(self, client):
        mock = AsyncMock(return_value=make_client(4, organization_name="ONG Sahel"))
        with patch.object(ClientService, "create_client", new=mock):
            response = client.post(
                "/api/clients",
                json={
                    "organizationName": "ONG Sahel",
                    "contactPerson": "Mariem",
                    "email": "m@sahel.mr",
                },
            )

        assert response.status_code == 201
        assert response.json()["organizationName"] == "ONG Sahel"

    def test_get_missing_is_404(self, client):
        with patch.object(
            ClientService,
            "get_client",
            new=AsyncMock(side_effect=NotFoundError("Client", 12)),
        ):
            response = client.get("/api/clients/12")

        assert response.status_code == 404

    def test_update(self, client):
        mock = AsyncMock(return_value=make_client(legal_status="ONG"))
        with patch.object(ClientService, "update_client", new=mock):
            response = client.put("/api/clients/1", json={"legalStatus": "ONG"})

        assert response.status_code == 200
        assert response.json()["legalStatus"] == "ONG"
