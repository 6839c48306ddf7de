"""
Schemas for the manual "generate due tickets" operation.
"""
from datetime import date

from core.schema_base import HTTPSchemaModel


class GenerateDueTicketsResponse(HTTPSchemaModel):
    """Result of one generation pass."""
    as_of_date: date
    tickets_created: int
