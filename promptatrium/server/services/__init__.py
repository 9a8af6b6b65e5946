"""
Service layer for the PromptAtrium server.

Services hold the business rules behind the API routers. Each one is built
per request around the request's ``AsyncSession`` and talks to the database
through the repositories in ``promptatrium.core.database.repositories``.
"""
