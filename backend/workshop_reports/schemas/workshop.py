from pydantic import BaseModel, ConfigDict, Field

class WorkshopCreate(BaseModel):
    name: str = Field(..., min_length=1)
    network_id: str | None = None

class WorkshopOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    network_id: str | None = None
