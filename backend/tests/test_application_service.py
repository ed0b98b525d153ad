"""
Unit Tests for the dossier and client service layer.

Usage:
    cd backend && pytest tests/test_application_service.py -v
"""

import asyncio
import sys
import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from richat_funding.models.application_models import ApplicationCreate, DocumentCreate
from richat_funding.models.client_models import ClientUpdate
from richat_funding.models.db.client import Client
from richat_funding.services.application_service import (
    ApplicationService,
    build_application_list_query,
)
from richat_funding.services.client_service import ClientService
from richat_funding.services.errors import NotFoundError


def make_session() -> MagicMock:
    session = MagicMock()
    session.get = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    return session


def compiled(stmt):
    return stmt.compile(dialect=postgresql.dialect())


# ============================================================================
# LIST QUERY
# ============================================================================

class TestApplicationListQuery:
    def test_joins_and_newest_first(self):
        sql = str(compiled(build_application_list_query()))
        assert "JOIN clients" in sql
        assert "JOIN funding_opportunities" in sql
        assert "ORDER BY applications.submission_date DESC, applications.id DESC" in sql
        assert "WHERE" not in sql

    def test_search_spans_client_and_opportunity(self):
        stmt = compiled(build_application_list_query(search=" verte "))
        sql = str(stmt)
        assert "clients.organization_name ILIKE" in sql
        assert "funding_opportunities.title ILIKE" in sql
        assert list(stmt.params.values()) == ["%verte%", "%verte%"]

    def test_status_is_exact(self):
        stmt = compiled(build_application_list_query(status_filter="Complet"))
        assert "applications.status =" in str(stmt)
        assert list(stmt.params.values()) == ["Complet"]

    def test_blank_search_is_ignored(self):
        assert "WHERE" not in str(compiled(build_application_list_query(search="  ")))


# ============================================================================
# WRITES
# ============================================================================

class TestApplicationWrites:
    def test_create_requires_existing_client(self):
        session = make_session()
        session.get.return_value = None

        with pytest.raises(NotFoundError) as exc:
            asyncio.run(
                ApplicationService.create_application(
                    session, ApplicationCreate(client_id=99, funding_opportunity_id=1)
                )
            )
        assert exc.value.entity == "Client"
        session.add.assert_not_called()

    def test_create_requires_existing_opportunity(self):
        session = make_session()
        session.get.side_effect = [Client(id=1), None]

        with pytest.raises(NotFoundError) as exc:
            asyncio.run(
                ApplicationService.create_application(
                    session, ApplicationCreate(client_id=1, funding_opportunity_id=404)
                )
            )
        assert exc.value.entity == "Funding opportunity"

    def test_document_on_missing_application(self):
        session = make_session()
        session.get.return_value = None

        with pytest.raises(NotFoundError):
            asyncio.run(
                ApplicationService.create_document(
                    session, 7, DocumentCreate(document_type="Annexes", file_name="a.pdf")
                )
            )
        session.add.assert_not_called()

    def test_delete_missing_document(self):
        session = make_session()
        session.get.return_value = None

        with pytest.raises(NotFoundError) as exc:
            asyncio.run(ApplicationService.delete_document(session, 3))
        assert exc.value.entity == "Document"


class TestClientService:
    def test_update_sets_only_sent_fields(self):
        session = make_session()
        client = Client(id=1, organization_name="ONG Sahel", contact_person="Mariem", email="m@sahel.mr")
        session.get.return_value = client

        updated = asyncio.run(
            ClientService.update_client(session, 1, ClientUpdate(phone="+222 11 22 33 44"))
        )

        assert updated.phone == "+222 11 22 33 44"
        assert updated.organization_name == "ONG Sahel"

    def test_get_missing(self):
        session = make_session()
        session.get.return_value = None
        with pytest.raises(NotFoundError):
            asyncio.run(ClientService.get_client(session, 5))
