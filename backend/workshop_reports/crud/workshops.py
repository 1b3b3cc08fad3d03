from sqlalchemy.orm import Session
from workshop_reports.db.models.workshop import Workshop
from workshop_reports.schemas.workshop import WorkshopCreate

def list_workshops(db: Session):
    return db.query(Workshop).order_by(Workshop.id).all()

def get_workshop(db: Session, workshop_id: int) -> Workshop | None:
    return db.query(Workshop).filter(Workshop.id == workshop_id).one_or_none()

def create_workshop(db: Session, data: WorkshopCreate) -> Workshop:
    w = Workshop(
        name=data.name,
        network_id=data.network_id,
    )
    db.add(w)
    db.commit()
    db.refresh(w)
    return w
