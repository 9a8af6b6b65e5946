"""PromptAtrium.

This package contains the API server behind PromptAtrium, a multi-tenant
library for creating, sharing, rating and organizing AI image-generation
prompts.

High-level architecture
-----------------------

The codebase is organized around three tiers:

- **REST API** (``promptatrium.server``): FastAPI routers under ``/api``,
  request identity and role checks, rate limiting and error mapping.
- **Relational store** (``promptatrium.core.database``): SQLModel entities and
  async repositories for prompts, communities, the marketplace and the
  transaction ledger.
- **Outbound integrations**: LLM providers used by the prompt-enhancement
  pipeline (through ``pydantic_ai``) and the payout gateway.

Core subpackages
----------------

- ``promptatrium.core``:

  - Logging and Logfire monitoring setup.
  - The application error taxonomy.
  - Database entities, repositories and I/O schemas.

- ``promptatrium.server``:

  - Application factory, middleware and exception handlers.
  - Service layer: enhancement, payments, payouts, disputes, communities.
  - Versionless ``/api`` routers.
"""
