"""Contract lifecycle, postponement and edit routes."""

from fastapi import APIRouter, Depends

from nasiya.api.deps import get_actor, get_services, success
from nasiya.api.schemas import CreateContractRequest, PostponeRequest, UpdateContractRequest
from nasiya.models import Actor
from nasiya.models.installment import EmployeeRole
from nasiya.services import NewContract, Services

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


@router.post("")
def create_contract(
    body: CreateContractRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    data = NewContract(**body.model_dump(exclude={"info"}), info=body.info.model_dump())
    if actor.role == EmployeeRole.SELLER.value:
        contract = services.contracts.seller_create(data, actor)
        return success(contract, "Contract created, awaiting approval")
    return success(services.contracts.create_contract(data, actor), "Contract created")


@router.put("/{contract_id}")
def update_contract(
    contract_id: str,
    body: UpdateContractRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    result = services.edits.update_contract(contract_id, body.model_dump(exclude_unset=True), actor)
    return success(result.to_dict(), "Contract updated")


@router.post("/{contract_id}/impact")
def analyze_impact(
    contract_id: str,
    body: UpdateContractRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    result = services.edits.analyze_edit_impact(contract_id, body.model_dump(exclude_unset=True))
    return success(result.to_dict(), "Edit impact analyzed")


@router.post("/{contract_id}/postpone")
def postpone_payment(
    contract_id: str,
    body: PostponeRequest,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    contract = services.postponement.postpone_payment(contract_id, body.new_date, body.reason, actor)
    return success(
        {
            "contract_id": contract.contract_id,
            "next_payment_date": contract.next_payment_date,
            "previous_payment_date": contract.previous_payment_date,
            "postponed_at": contract.postponed_at,
        },
        "Payment postponed",
    )


@router.post("/{contract_id}/approve")
def approve_contract(
    contract_id: str,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    return success(services.contracts.approve_contract(contract_id, actor), "Contract approved")


@router.delete("/{contract_id}")
def delete_contract(
    contract_id: str,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    services.contracts.delete_contract(contract_id, actor)
    return success({"contract_id": contract_id}, "Contract deleted")


@router.get("/{contract_id}/summary")
def contract_summary(
    contract_id: str,
    actor: Actor = Depends(get_actor),
    services: Services = Depends(get_services),
):
    return success(services.payments.get_contract_summary(contract_id))
