"""Private ``/users`` endpoints — PayID record management."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from payid_server.api.dependencies import get_payid_service
from payid_server.api.middleware.version import require_api_version
from payid_server.api.private.schemas import PayIDRecordSchema, record_body
from payid_server.engine.services.payid_service import PayIDService  # noqa: TC001

router = APIRouter(tags=["users"], dependencies=[Depends(require_api_version)])


def _location(pay_id: str) -> dict[str, str]:
    return {"Location": f"/users/{pay_id}"}


@router.get("/users/{pay_id}")
async def get_user(
    pay_id: str,
    service: Annotated[PayIDService, Depends(get_payid_service)],
) -> JSONResponse:
    """Return the addresses stored under a PayID."""
    record = await service.get(pay_id)
    return JSONResponse(content=record_body(record))


@router.post("/users", status_code=201)
async def create_user(
    body: PayIDRecordSchema,
    service: Annotated[PayIDService, Depends(get_payid_service)],
) -> Response:
    """Create a PayID; responds with an empty body and a ``Location`` header."""
    record = await service.create(body.to_record())
    return Response(status_code=201, media_type="text/plain", headers=_location(record.pay_id))


@router.put("/users/{pay_id}")
async def update_user(
    pay_id: str,
    body: PayIDRecordSchema,
    service: Annotated[PayIDService, Depends(get_payid_service)],
) -> JSONResponse:
    """Update, rename, or create a PayID.

    Responds 200 when an existing record was updated, 201 with a
    ``Location`` header when a record was created under the body's PayID.
    """
    result = await service.upsert(pay_id, body.to_record())
    if result.created:
        return JSONResponse(
            status_code=201,
            content=record_body(result.record),
            headers=_location(result.record.pay_id),
        )
    return JSONResponse(content=record_body(result.record))


@router.delete("/users/{pay_id}", status_code=204)
async def delete_user(
    pay_id: str,
    service: Annotated[PayIDService, Depends(get_payid_service)],
) -> Response:
    """Delete a PayID. Unknown PayIDs are not an error."""
    await service.delete(pay_id)
    return Response(status_code=204)
