from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Dict

from backend.app.database import get_db_session
from backend.app.schemas.recurring_templates import (
    RecurringTemplateCreate, RecurringTemplateUpdate, RecurringTemplateResponse
)
from backend.app.services.recurring_template_service import (
    create_template, get_templates, get_template, update_template, deactivate_template, delete_template
)

router = APIRouter()

@router.post("/", response_model=RecurringTemplateResponse, status_code=201)
def create_template_endpoint(
    template_data: RecurringTemplateCreate,
    db: Session = Depends(get_db_session)
):
    """
    Create a recurring transaction template.

    - The first occurrence is the start date
    - frequency: daily, weekly, monthly or yearly; interval >= 1
    """
    return create_template(db, template_data)

@router.get("/", response_model=List[RecurringTemplateResponse])
def get_templates_endpoint(
    user_id: str = Query(..., description="ID of the user"),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db_session)
):
    return get_templates(db, user_id, include_inactive)

@router.get("/{template_id}", response_model=RecurringTemplateResponse)
def get_template_endpoint(template_id: str, user_id: str = Query(...), db: Session = Depends(get_db_session)):
    return get_template(db, template_id, user_id)

@router.put("/{template_id}", response_model=RecurringTemplateResponse)
def update_template_endpoint(
    template_id: str,
    update: RecurringTemplateUpdate,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    return update_template(db, template_id, user_id, update)

@router.post("/{template_id}/deactivate", response_model=RecurringTemplateResponse)
def deactivate_template_endpoint(template_id: str, user_id: str = Query(...), db: Session = Depends(get_db_session)):
    """
    Stop generating transactions from a template without deleting it
    """
    return deactivate_template(db, template_id, user_id)

@router.delete("/{template_id}", response_model=Dict[str, bool])
def delete_template_endpoint(template_id: str, user_id: str = Query(...), db: Session = Depends(get_db_session)):
    return delete_template(db, template_id, user_id)
