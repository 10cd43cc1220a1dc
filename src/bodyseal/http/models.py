from pydantic import BaseModel, Field
from typing import List, Optional

class DigestCheck(BaseModel):
    present: bool
    verified: bool
    algorithms: List[str] = Field(default_factory=list)
    headers: List[str] = Field(default_factory=list)
    failure_reason: Optional[str] = None
