"""
InkPad Backend — Application Package Initializer
=================================================

What: Marks the `inkpad` directory as a Python package.
Who:  Used by uvicorn (`inkpad.main:app`), Alembic, pytest, and client code
      that drives the handwritten-note engine.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Ownership scoping, search
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Beside the server layers sit two client-side packages:
    - canvas: multi-page handwritten note engine (pages, canvas binding, persistence)
    - client: HTTP storage collaborator the engine saves through
"""

__version__ = "1.0.0"
