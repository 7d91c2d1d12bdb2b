"""
Folio Backend — API Contracts
===============================

Pydantic models for request bodies and responses. Field names are snake_case in
Python and camelCase on the wire (`authorId`, `publishDate`, ...).
"""
