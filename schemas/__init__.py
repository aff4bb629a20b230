"""
Pydantic schemas for records and API responses.

Schemas:
    records: Customer/transaction record shapes, flat-file layouts and
        their decode/encode functions
    api: API response models

Usage:
    from schemas.records import CustomerRecord, decode_customer
    from schemas.api import JobRunResponse, HealthCheckResponse

Example:
    customer = decode_customer({
        "number": "001", "firstName": "Ada", "lastName": "Lovelace",
        "address": "12 Main St", "city": "London", "state": "LN",
        "postCode": "10001",
    })
    assert customer.transactions == []
"""

from schemas.api import CheckpointResponse, HealthCheckResponse, JobRunResponse
from schemas.records import CustomerRecord, TransactionRecord, TransactionSum

__all__ = [
    "CustomerRecord",
    "TransactionRecord",
    "TransactionSum",
    "JobRunResponse",
    "CheckpointResponse",
    "HealthCheckResponse",
]
