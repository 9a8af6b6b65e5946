"""
Shared models for PromptAtrium.

- domain: enums describing roles, statuses and lifecycle states
- io: Pydantic request/response schemas used by the API layer
"""
