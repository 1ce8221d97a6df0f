"""Shared table metadata."""

from sqlalchemy import MetaData

# Single registry so cross-table foreign keys resolve on create_all
metadata = MetaData()
