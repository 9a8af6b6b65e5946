"""
API I/O schemas for PromptAtrium.

Request and response models exchanged with API clients. All of them derive
from ``ApiModel`` and serialize with camelCase keys.
"""
