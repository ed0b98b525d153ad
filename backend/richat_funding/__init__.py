"""
Richat Funding Backend Package

FastAPI backend for the Mauritanian development-funding catalog and the
consultant dossier tracker:

- main.py: FastAPI application wiring
- services/opportunity_service.py: filtered/sorted opportunity queries and statistics
- services/completeness.py: dossier completeness evaluation
"""

__version__ = "1.0.0"
