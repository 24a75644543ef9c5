"""Record shapes shared by the store and the routers."""
import datetime
import enum
import uuid
from typing import Any, Dict, Optional


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Values accepted by the status update endpoint; pending is only ever implicit.
DECIDED_STATUSES = (ApplicationStatus.ACCEPTED.value, ApplicationStatus.REJECTED.value)

PUBLIC_USER_FIELDS = ("id", "name", "email", "company_name", "industry", "industry_description", "logo")
TENDER_APPLICATION_FIELDS = ("id", "proposal_text", "applicant_id", "created_at")
NESTED_APPLICATION_FIELDS = ("id", "proposal_text", "applicant_id", "status", "created_at")
SEARCH_TENDER_FIELDS = ("id", "title", "description", "budget", "deadline", "creator_id")


def _new_record() -> Dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "created_at": datetime.datetime.now(datetime.timezone.utc),
    }


def new_user(
    *,
    name: str,
    email: str,
    password_hash: str,
    company_name: str,
    industry: str,
    industry_description: str,
    logo: str = "",
) -> Dict[str, Any]:
    user = _new_record()
    user.update({
        "name": name,
        "email": email,
        "password": password_hash,
        "company_name": company_name,
        "industry": industry,
        "industry_description": industry_description,
        "logo": logo,
    })
    return user


def new_tender(*, creator_id: str, title: str, description: str, budget: float, deadline: datetime.date) -> Dict[str, Any]:
    tender = _new_record()
    tender.update({
        "creator_id": creator_id,
        "title": title,
        "description": description,
        "budget": budget,
        "deadline": deadline.isoformat(),
    })
    return tender


def new_application(*, tender_id: str, applicant_id: str, proposal_text: str) -> Dict[str, Any]:
    application = _new_record()
    application.update({
        "tender_id": tender_id,
        "applicant_id": applicant_id,
        "proposal_text": proposal_text,
        "status": ApplicationStatus.PENDING.value,
    })
    return application


def pick(record: Optional[Dict[str, Any]], fields) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {field: record.get(field) for field in fields}


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return pick(user, PUBLIC_USER_FIELDS)
