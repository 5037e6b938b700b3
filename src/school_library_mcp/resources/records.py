"""Borrow Record Resources - Lending History

Resources:
- library://records/list - Every borrow record in the order it was made,
  returned loans included
- library://records/{record_id} - One borrow record by id
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError
from pydantic import BaseModel, Field

from ..models.borrow_record import BorrowRecord
from ..services import get_lending_service
from .uri_utils import parse_entity_id

logger = logging.getLogger(__name__)


class RecordListResponse(BaseModel):
    records: list[BorrowRecord] = Field(..., description="Every borrow record, oldest first")
    total: int = Field(..., description="Number of records")
    open: int = Field(..., description="Records whose book has not been returned")


async def list_records_handler() -> dict[str, Any]:
    """Returns the full lending history."""
    try:
        logger.debug("MCP Resource Request - records/list")

        records = get_lending_service().list_borrow_records()
        response = RecordListResponse(
            records=records,
            total=len(records),
            open=sum(1 for record in records if record.is_open),
        )
        return response.model_dump(mode="json")

    except Exception as e:
        logger.exception("Error in records/list resource")
        raise ResourceError(f"Failed to retrieve borrow records: {e!s}") from e


async def get_record_handler(record_id: str) -> dict[str, Any]:
    """Returns one borrow record, open or returned."""
    try:
        logger.debug("MCP Resource Request - records/%s", record_id)

        record = get_lending_service().get_borrow_record(parse_entity_id(record_id, "record"))
        if record is None:
            raise ResourceError(f"Borrow record not found: {record_id}")

        return record.model_dump(mode="json")

    except ResourceError:
        raise
    except Exception as e:
        logger.exception("Error in records/{record_id} resource")
        raise ResourceError(f"Failed to retrieve borrow record: {e!s}") from e


record_resources: list[dict[str, Any]] = [
    {
        "uri": "library://records/list",
        "name": "Borrow Records",
        "description": (
            "The lending history: every borrow record in the order it was made. "
            "Open records have a null return_date."
        ),
        "mime_type": "application/json",
        "handler": list_records_handler,
    },
    {
        "uri_template": "library://records/{record_id}",
        "name": "Borrow Record Details",
        "description": "Get one borrow record by id",
        "mime_type": "application/json",
        "handler": get_record_handler,
    },
]
