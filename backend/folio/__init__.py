"""
Folio Backend — Application Package Initializer
=================================================

What: Marks the `folio` directory as a Python package.
Why:  Enables module imports like `from folio.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend serves a personal blog/portfolio: authored text entries
    ("reflections") and photo albums. It follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Security (Principal & Policies)   │  ← who may see / change what
    ├─────────────────────────────────────┤
    │    Services (Resource Orchestrators)│  ← authorize → validate → persist → store
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database & Object Storage clients  │  ← injected, one per process
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
