from pydantic import BaseModel
from typing import Optional

class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str
    preferences: Optional[dict] = None
