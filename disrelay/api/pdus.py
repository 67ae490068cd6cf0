"""PDU decode API endpoint.

This is the thin FastAPI adapter. It takes one raw DIS datagram as the
request body and runs it through the same processor as UDP traffic, so a
successful decode is relayed to subscribers too.
"""

from __future__ import annotations

import json

from fastapi import APIRouter, Request, Response

from disrelay.core.errors import NotEntityState, UnsupportedVersion
from disrelay.core.models import RawDatagram

router = APIRouter(prefix="/api/v1")


@router.post("/pdus")
async def receive_pdu(request: Request) -> Response:
    """Decode a single DIS datagram.

    Accepts the verbatim datagram bytes (application/octet-stream).
    Returns the decoded summary on success. Other PDU types answer 200
    with ``accepted: false`` and reason ``not_entity_state``. A DIS version
    other than 6 gets 426 and any other rejection 422.
    """
    from disrelay.main import get_processor

    processor = get_processor()
    body_bytes = await request.body()
    client = request.client
    datagram = RawDatagram(
        data=body_bytes,
        address=client.host if client else "",
        port=client.port if client else 0,
    )

    decoded, error = processor.process_datagram(datagram)

    if decoded is not None:
        result = {"accepted": True, "error": "", "pdu": decoded.to_summary()}
        status = 200
    else:
        reason = error.reason if error is not None else "processing_error"
        result = {
            "accepted": False,
            "error": str(error) if error is not None else "internal processing error",
            "reason": reason,
            "pdu": None,
        }
        status = 422
        if isinstance(error, NotEntityState):
            # Filter outcome, not a rejection.
            status = 200
        elif isinstance(error, UnsupportedVersion):
            status = 426
        elif error is None:
            status = 500

    return Response(
        content=json.dumps(result),
        status_code=status,
        media_type="application/json",
    )
