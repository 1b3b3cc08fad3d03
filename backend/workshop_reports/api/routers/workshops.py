from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from workshop_reports.core.deps import get_db
from workshop_reports.schemas.workshop import WorkshopCreate, WorkshopOut
from workshop_reports.crud.workshops import create_workshop, get_workshop, list_workshops

router = APIRouter()

@router.get("", response_model=list[WorkshopOut])
def get_workshops(db: Session = Depends(get_db)):
    return list_workshops(db)

@router.post("", response_model=WorkshopOut)
def post_workshop(data: WorkshopCreate, db: Session = Depends(get_db)):
    return create_workshop(db, data)

@router.get("/{workshop_id}", response_model=WorkshopOut)
def get_one_workshop(workshop_id: int, db: Session = Depends(get_db)):
    w = get_workshop(db, workshop_id)
    if not w:
        raise HTTPException(status_code=404, detail="Workshop not found")
    return w
