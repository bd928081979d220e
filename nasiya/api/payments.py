"""Payment intake and cash-office routes."""

from fastapi import APIRouter, Depends

from nasiya.api.deps import get_actor, get_services, success
from nasiya.api.schemas import (
    ConfirmBatchRequest,
    PayAllRequest,
    PayRemainingRequest,
    ReceivePaymentRequest,
    RejectPaymentRequest,
)
from nasiya.models import Actor
from nasiya.services import Services

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/receive")
def receive_payment(
    body: ReceivePaymentRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    receipt = services.payments.receive_payment(
        body.contract_id,
        body.amount,
        actor,
        source=body.source,
        notes=body.notes,
        currency_details=body.currency_details.to_domain() if body.currency_details else None,
        target_month=body.target_month,
    )
    message = "Payment sent for cash confirmation" if receipt.is_pending else "Payment received"
    return success(receipt, message)


@router.get("/pending")
def list_pending(actor: Actor = Depends(get_actor), services: Services = Depends(get_services)):
    return success(services.cash.list_pending_payments())


@router.get("/history")
def payment_history(
    customer_id: str | None = None,
    contract_id: str | None = None,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    return success(services.payments.get_payment_history(customer_id=customer_id, contract_id=contract_id))


@router.post("/confirm-batch")
def confirm_batch(
    body: ConfirmBatchRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    results = services.cash.confirm_payments(body.payment_ids, actor)
    confirmed = sum(1 for r in results if r["success"])
    return success(results, f"{confirmed} of {len(results)} payments confirmed")


@router.post("/pay-all")
def pay_all_remaining(
    body: PayAllRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    receipts = services.payments.pay_all_remaining_months(body.contract_id, body.amount, actor, notes=body.notes)
    return success(receipts, f"{len(receipts)} months paid")


@router.post("/{payment_id}/confirm")
def confirm_payment(
    payment_id: str,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    return success(services.cash.confirm_payment(payment_id, actor), "Payment confirmed")


@router.post("/{payment_id}/reject")
def reject_payment(
    payment_id: str,
    body: RejectPaymentRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    return success(services.cash.reject_payment(payment_id, body.reason, actor), "Payment rejected")


@router.post("/{payment_id}/pay-remaining")
def pay_remaining(
    payment_id: str,
    body: PayRemainingRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    extra = services.payments.pay_remaining(
        payment_id,
        body.amount,
        actor,
        notes=body.notes,
        currency_details=body.currency_details.to_domain() if body.currency_details else None,
    )
    return success(extra, "Remaining amount paid")
