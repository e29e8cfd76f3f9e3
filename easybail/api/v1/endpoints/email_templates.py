from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from easybail.database import get_db
from easybail.models.email_template import EmailTemplate
from easybail.schemas.email import EmailTemplateCreate, EmailTemplateInDB
from easybail.utils.audit_logger import create_audit_log

router = APIRouter()


@router.get("/", response_model=List[EmailTemplateInDB])
async def read_email_templates(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """Retrieve email templates."""
    return db.query(EmailTemplate).order_by(EmailTemplate.name).offset(skip).limit(limit).all()


@router.post("/", response_model=EmailTemplateInDB, status_code=status.HTTP_201_CREATED)
async def create_email_template(
    http_request: Request,
    template: EmailTemplateCreate,
    db: Session = Depends(get_db)
):
    """Create an email template. Placeholders use the {{variable}} syntax."""
    db_template = EmailTemplate(**template.model_dump())
    db.add(db_template)
    db.commit()
    db.refresh(db_template)

    create_audit_log(
        db=db,
        request=http_request,
        action="email_template_created",
        entity_type="email_template",
        entity_id=db_template.id
    )
    return db_template


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_email_template(
    http_request: Request,
    template_id: str,
    db: Session = Depends(get_db)
):
    """Delete an email template. Automations referencing it will fail until updated."""
    db_template = db.get(EmailTemplate, template_id)
    if db_template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Email template not found")

    db.delete(db_template)
    db.commit()
    create_audit_log(
        db=db,
        request=http_request,
        action="email_template_deleted",
        entity_type="email_template",
        entity_id=template_id
    )
    return
