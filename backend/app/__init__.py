"""
Inkpost API: Application Package
==================================

What: The `app` package: a blog API where users write posts in categories and
      comment on each other's posts.
Who:  Imported by uvicorn (app.main:app), Alembic, the `inkpost` CLI and pytest.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes (HTTP) / CLI commands      │  ← request parsing, envelopes
    ├─────────────────────────────────────┤
    │   Services + Policies               │  ← validation, ownership, queueing
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database                          │  ← async sessions, job tables
    └─────────────────────────────────────┘

Routes never talk to the database directly; the CLI and the queue worker
reuse the same services as the HTTP layer.
"""

__version__ = "1.0.0"
