from pydantic import BaseModel


class OfficeOut(BaseModel):
    id: str
    name: str
    location: str
    color: str
    is_default: bool = False
