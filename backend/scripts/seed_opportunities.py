"""Seed the database with sample funding opportunities and dossiers.

Usage:
    cd backend
    python3 -m scripts.seed_opportunities [--dry-run] [--skip-dossiers]

Inserts a small catalog of climate-finance opportunities open to Mauritanian
organizations, then three sample client dossiers with their submitted
documents.  Records go through the same pydantic schemas as the API, so
invalid seed data fails loudly instead of reaching the database.
Opportunities whose title already exists are skipped, so the script can be
re-run safely.
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict, List

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import select

from richat_funding.database import is_database_configured, session_scope
from richat_funding.models.application_models import ApplicationCreate, DocumentCreate
from richat_funding.models.client_models import ClientCreate
from richat_funding.models.db.application import Application, Document
from richat_funding.models.db.client import Client
from richat_funding.models.db.funding_opportunity import FundingOpportunity
from richat_funding.models.opportunity_models import OpportunityCreate

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("seed_opportunities")

# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

SAMPLE_OPPORTUNITIES: List[Dict[str, Any]] = [
    {
        "title": "GCF - Simplified Approval Process",
        "fundingProgram": "Guichet permanent du GCF",
        "description": "Processus d'approbation simplifié du GCF",
        "eligibilityCriteria": "Organisations locales",
        "requiredDocuments": "Statuts juridiques; Budget prévisionnel; Plan d'affaires/Business plan",
        "minAmount": 10000,
        "maxAmount": 10000000,
        "fundingType": "Don",
        "status": "Ouvert",
        "sectors": ["Environnement", "Climat"],
        "deadline": "Aucune - Ouvert en continu",
    },
    {
        "title": "GEF - Least Developed Countries Fund",
        "fundingProgram": "Fonds GEF",
        "description": "Fonds pour les pays les moins avancés",
        "eligibilityCriteria": "Pays moins avancés",
        "requiredDocuments": "Statuts juridiques; Budget prévisionnel; Preuves de cofinancement",
        "minAmount": 5000,
        "maxAmount": 50000000,
        "fundingType": "Don",
        "status": "Ouvert",
        "sectors": ["Environnement", "Développement"],
        "deadline": "Soumissions continues - Council 2 fois/an",
    },
    {
        "title": "CIF - Climate Investment Funds",
        "fundingProgram": "Programme CIF",
        "description": "Fonds d'investissement climatique",
        "eligibilityCriteria": "Projets climatiques",
        "requiredDocuments": "Étude de faisabilité; Plan d'affaires/Business plan; Annexes",
        "minAmount": 1000000,
        "maxAmount": 500000000,
        "fundingType": "Prêt",
        "status": "Ouvert",
        "sectors": ["Climat", "Énergie"],
        "deadline": "Approche programmatique",
    },
    {
        "title": "GEF - Programme de Microfinancements",
        "fundingProgram": "Fonds GEF - Small Grants Programme",
        "description": "Subventions aux ONG et organisations communautaires pour des projets environnementaux locaux",
        "eligibilityCriteria": "ONG et organisations communautaires enregistrées en Mauritanie",
        "requiredDocuments": "Lettre d'intention; Budget prévisionnel; Identité du représentant légal",
        "externalLink": "https://sgp.undp.org",
        "minAmount": 5000,
        "maxAmount": 50000,
        "fundingType": "Subvention",
        "status": "À venir",
        "sectors": ["Environnement", "Agriculture"],
        "deadline": "2026-03-31",
    },
    {
        "title": "Fonds d'adaptation - Accès direct",
        "fundingProgram": "Adaptation Fund",
        "description": "Financement de projets d'adaptation via une entité nationale accréditée",
        "eligibilityCriteria": "Entités nationales de mise en œuvre accréditées",
        "requiredDocuments": "Étude de faisabilité; Pitch deck; Relevé d'identité bancaire",
        "externalLink": "https://www.adaptation-fund.org",
        "minAmount": 500000,
        "maxAmount": 10000000,
        "fundingType": "Mixte",
        "status": "Fermé",
        "sectors": ["Climat", "Eau"],
        "deadline": "2025-06-30",
    },
]

# Each dossier references its opportunity by title
SAMPLE_DOSSIERS: List[Dict[str, Any]] = [
    {
        "client": {
            "organizationName": "Association Verte Mauritanie",
            "contactPerson": "Aminata Sow",
            "email": "aminata@vertmauritanie.org",
            "phone": "+222 45 67 89 01",
            "address": "Nouakchott, Mauritanie",
            "legalStatus": "Association",
            "structureType": "État",
        },
        "opportunity": "GCF - Simplified Approval Process",
        "application": {
            "status": "En cours",
            "submissionDate": "2025-01-05T10:00:00Z",
            "completionScore": 65,
            "notes": "Dossier en cours de finalisation",
        },
        "documents": [
            ("Statuts juridiques", "statuts_association.pdf", 245000, "pdf"),
            ("Budget prévisionnel", "budget_previsionnel_2025.xlsx", 89000, "xlsx"),
            ("Plan d'affaires", "business_plan_mauritanie.pdf", 1200000, "pdf"),
        ],
    },
    {
        "client": {
            "organizationName": "Coopérative des Pêcheurs",
            "contactPerson": "Mohamed Vall",
            "email": "m.vall@pecheurs.mr",
            "phone": "+222 36 78 90 12",
            "address": "Nouadhibou, Mauritanie",
            "legalStatus": "Coopérative",
            "structureType": "Privé",
        },
        "opportunity": "GEF - Least Developed Countries Fund",
        "application": {
            "status": "Prêt",
            "submissionDate": "2025-01-03T14:30:00Z",
            "assignedConsultant": "Dr. Fatima Bint",
            "completionScore": 95,
            "notes": "Dossier complet, prêt pour soumission",
        },
        "documents": [
            ("Statuts juridiques", "statuts_cooperative.pdf", 180000, "pdf"),
            ("Budget prévisionnel", "budget_2025_peche.xlsx", 95000, "xlsx"),
            ("Plan d'affaires", "plan_affaires_peche.pdf", 890000, "pdf"),
            ("Preuves de cofinancement", "cofinancement_banque.pdf", 340000, "pdf"),
            ("Relevé d'identité bancaire", "rib_cooperative.pdf", 125000, "pdf"),
        ],
    },
    {
        "client": {
            "organizationName": "Initiative Jeunesse Climat",
            "contactPerson": "Aicha Mint Ahmed",
            "email": "aicha@jeunesseClimat.mr",
            "phone": "+222 22 33 44 55",
            "address": "Rosso, Mauritanie",
            "legalStatus": "ONG",
            "structureType": "Institution publique",
        },
        "opportunity": "CIF - Climate Investment Funds",
        "application": {
            "status": "En cours",
            "submissionDate": "2025-01-07T09:15:00Z",
            "completionScore": 35,
            "notes": "Plusieurs documents manquants",
        },
        "documents": [
            ("Plan d'affaires", "plan_jeunesse_climat.pdf", 650000, "pdf"),
            ("Identité du représentant légal", "cni_aicha.pdf", 210000, "pdf"),
        ],
    },
]


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


async def seed_opportunities(db) -> Dict[str, FundingOpportunity]:
    """Insert missing sample opportunities; return every sample keyed by title."""
    titles = [o["title"] for o in SAMPLE_OPPORTUNITIES]
    result = await db.execute(
        select(FundingOpportunity).where(FundingOpportunity.title.in_(titles))
    )
    by_title = {o.title: o for o in result.scalars().all()}

    for raw in SAMPLE_OPPORTUNITIES:
        if raw["title"] in by_title:
            logger.info(f"Skipping existing opportunity: {raw['title']}")
            continue
        data = OpportunityCreate.model_validate(raw)
        opportunity = FundingOpportunity(**data.model_dump())
        db.add(opportunity)
        by_title[opportunity.title] = opportunity
        logger.info(f"Added opportunity: {opportunity.title} ({opportunity.status})")

    await db.flush()
    return by_title


async def seed_dossiers(db, opportunities: Dict[str, FundingOpportunity]) -> int:
    """Insert the sample clients with one dossier each; return dossiers created."""
    created = 0
    for raw in SAMPLE_DOSSIERS:
        client_data = ClientCreate.model_validate(raw["client"])
        existing = await db.execute(
            select(Client).where(
                Client.organization_name == client_data.organization_name
            )
        )
        if existing.scalars().first() is not None:
            logger.info(f"Skipping existing client: {client_data.organization_name}")
            continue

        client = Client(**client_data.model_dump())
        db.add(client)
        await db.flush()

        opportunity = opportunities[raw["opportunity"]]
        app_data = ApplicationCreate.model_validate(
            {
                **raw["application"],
                "clientId": client.id,
                "fundingOpportunityId": opportunity.id,
            }
        )
        application = Application(**app_data.model_dump(exclude_none=True))
        db.add(application)
        await db.flush()

        for document_type, file_name, file_size, file_type in raw["documents"]:
            doc = DocumentCreate(
                document_type=document_type,
                file_name=file_name,
                file_size=file_size,
                file_type=file_type,
            )
            db.add(Document(application_id=application.id, **doc.model_dump()))

        created += 1
        logger.info(
            f"Added dossier: {client.organization_name} -> {opportunity.title} "
            f"({len(raw['documents'])} documents)"
        )

    await db.flush()
    return created


async def run_seed(dry_run: bool, skip_dossiers: bool) -> None:
    if not is_database_configured():
        logger.error("DATABASE_URL is not set; nothing to seed")
        sys.exit(1)

    started = datetime.now()
    async with session_scope(commit=not dry_run) as db:
        opportunities = await seed_opportunities(db)
        dossiers = 0 if skip_dossiers else await seed_dossiers(db, opportunities)

    logger.info("=" * 60)
    logger.info("SEED COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Opportunities in catalog: {len(opportunities)}")
    logger.info(f"Dossiers created:         {dossiers}")
    logger.info(f"Elapsed:                  {datetime.now() - started}")
    if dry_run:
        logger.info("DRY RUN - no changes persisted.")


def main():
    parser = argparse.ArgumentParser(
        description="Seed Richat Funding with sample opportunities and dossiers"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run every insert inside a transaction, then roll it back",
    )
    parser.add_argument(
        "--skip-dossiers",
        action="store_true",
        help="Only seed the opportunity catalog",
    )
    args = parser.parse_args()
    asyncio.run(run_seed(args.dry_run, args.skip_dossiers))


if __name__ == "__main__":
    main()
