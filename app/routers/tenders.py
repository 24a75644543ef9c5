from fastapi import APIRouter, Depends, Query, status
from typing import Any, Dict, Optional
import logging

from app.dependencies import CurrentUser, get_current_user, get_store
from app.errors import NotFoundOrUnauthorized, ValidationError
from app.models import DECIDED_STATUSES, SEARCH_TENDER_FIELDS, new_application, new_tender, pick
from app.ownership import require_owner, tender_owner
from app.schemas import ApplicationCreate, StatusUpdate, TenderCreate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/tenders",
    tags=["Tenders"],
    dependencies=[Depends(get_current_user)],
)


def matches_query(tender: Dict[str, Any], query: str) -> bool:
    """Case-insensitive substring match on the tender text and its owner's profile."""
    owner = tender.get("owner") or {}
    haystacks = (
        tender.get("title"),
        tender.get("description"),
        owner.get("industry"),
        owner.get("company_name"),
    )
    return any(query in value.lower() for value in haystacks if isinstance(value, str))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tender(
    body: TenderCreate,
    current_user: CurrentUser = Depends(get_current_user),
    store=Depends(get_store),
):
    if not body.title or not body.description or body.budget is None or body.deadline is None:
        raise ValidationError("All fields are required")

    tender = new_tender(
        creator_id=current_user.user_id,
        title=body.title,
        description=body.description,
        budget=body.budget,
        deadline=body.deadline,
    )
    await store.insert_tender(tender)
    logger.info(f"Tender {tender['id']} created by {current_user.user_id}")
    return {"success": True, "message": "Tender created", "tender": tender}


@router.get("/my")
async def get_my_tenders(current_user: CurrentUser = Depends(get_current_user), store=Depends(get_store)):
    tenders = await store.list_tenders(creator_id=current_user.user_id)
    return {"success": True, "tenders": tenders}


@router.get("/others")
async def get_other_tenders(current_user: CurrentUser = Depends(get_current_user), store=Depends(get_store)):
    tenders = await store.list_tenders(exclude_creator=current_user.user_id)
    return {"tenders": tenders}


@router.get("/my-applications")
async def get_my_applications(current_user: CurrentUser = Depends(get_current_user), store=Depends(get_store)):
    applications = await store.list_applicant_applications(current_user.user_id)
    return {"applications": applications}


@router.get("/my-with-applications")
async def get_my_tenders_with_applications(
    current_user: CurrentUser = Depends(get_current_user),
    store=Depends(get_store),
):
    tenders = await store.list_tenders_with_applications(current_user.user_id)
    return {"tenders": tenders}


@router.get("/search")
async def search_tenders(
    q: Optional[str] = Query(None, description="Keyword search"),
    current_user: CurrentUser = Depends(get_current_user),
    store=Depends(get_store),
):
    query = (q or "").strip().lower()
    if not query:
        raise ValidationError("Search query is required")

    candidates = await store.search_tenders(exclude_creator=current_user.user_id, query=query)
    # Owner fields are only present when the store could join the creator.
    results = [pick(tender, SEARCH_TENDER_FIELDS) for tender in candidates if matches_query(tender, query)]
    return {"tenders": results}


@router.post("/{tender_id}/apply", status_code=status.HTTP_201_CREATED)
async def apply_to_tender(
    tender_id: str,
    body: ApplicationCreate,
    current_user: CurrentUser = Depends(get_current_user),
    store=Depends(get_store),
):
    if not body.proposal_text or not tender_id:
        raise ValidationError("Missing required fields")

    application = new_application(
        tender_id=tender_id,
        applicant_id=current_user.user_id,
        proposal_text=body.proposal_text,
    )
    await store.insert_application(application)
    logger.info(f"Application {application['id']} submitted to tender {tender_id}")
    return {"message": "Application submitted successfully"}


@router.get("/{tender_id}/applications")
async def get_tender_applications(
    tender_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store=Depends(get_store),
):
    await require_owner(
        lambda: store.get_tender(tender_id),
        tender_owner,
        current_user.user_id,
        missing=NotFoundOrUnauthorized("Tender not found or unauthorized"),
        denied=NotFoundOrUnauthorized("Access denied"),
    )
    applications = await store.list_tender_applications(tender_id)
    return {"applications": applications}


@router.patch("/applications/{application_id}/status")
async def update_application_status(
    application_id: str,
    body: StatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    store=Depends(get_store),
):
    if body.status not in DECIDED_STATUSES:
        raise ValidationError("Invalid status")

    application = await store.get_application(application_id)
    if application is None:
        raise NotFoundOrUnauthorized("Application not found", status_code=status.HTTP_404_NOT_FOUND)

    await require_owner(
        lambda: store.get_tender(application["tender_id"]),
        tender_owner,
        current_user.user_id,
        missing=NotFoundOrUnauthorized("Unauthorized"),
    )

    # Already-decided applications may be decided again.
    await store.update_application_status(application_id, body.status)
    return {"success": True, "message": f"Application {body.status}"}
