"""Debtor routes."""

from fastapi import APIRouter, Depends

from nasiya.api.deps import get_actor, get_services, success
from nasiya.models import Actor
from nasiya.services import Services

router = APIRouter(prefix="/api/debtors", tags=["debtors"])


@router.get("")
def list_debtors(actor: Actor = Depends(get_actor), services: Services = Depends(get_services)):
    debtors = sorted(services.store.get_all_debtors(), key=lambda d: d.overdue_days, reverse=True)
    return success(debtors)


@router.post("/sweep")
def run_sweep(actor: Actor = Depends(get_actor), services: Services = Depends(get_services)):
    return success(services.debtors.run_sweep(), "Debtor sweep finished")
