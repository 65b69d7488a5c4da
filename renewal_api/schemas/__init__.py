"""
Pydantic schemas for API request and response validation.

Request bodies mirror the renewal form's camelCase JSON through
``CamelModel`` aliases.
"""
