"""
provider_service package

This package contains the backend of the Provider API.
It includes:

- FastAPI application (`main.py`) and routers (`routes/`)
- SQLAlchemy models and database integration (`models.py`, `db.py`)
- Authentication, lockout and JWT logic (`auth.py`)
- Pydantic schemas and payload validation (`schemas.py`, `validation.py`)
- Settings loaded from the environment (`config.py`)
"""
