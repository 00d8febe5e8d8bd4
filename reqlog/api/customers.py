from __future__ import annotations

from fastapi import APIRouter, Depends

from reqlog.models.domain import fake_bank, fake_customer
from reqlog.observability import logger as log
from reqlog.observability.context import RequestContext, get_request_context

router = APIRouter(tags=["customers"])


@router.get("/get_customer")
async def get_customer(ctx: RequestContext = Depends(get_request_context)) -> dict[str, str]:
    customer = fake_customer()
    log.info("Logging customer data", ctx=ctx, customer=customer)
    return {"status": "ok"}


@router.get("/get_bank")
async def get_bank(ctx: RequestContext = Depends(get_request_context)) -> dict[str, str]:
    bank = fake_bank()
    log.error("Logging bank data", ctx=ctx, bank=bank)
    return {"status": "ok"}
