"""Library Admin - Core Package

This package contains the admin console core:
- Data models (models.py)
- Loan status classification and enrichment (loans.py)
- Availability filter and search dispatch (catalog.py)
- Dashboard summary (summary.py)
- Form validation (validators.py)
- Session state and mutation coordination (state.py, session.py, coordinator.py)
- In-memory sandbox catalog server (sandbox.py)
"""
