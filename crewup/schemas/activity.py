from typing import List

from pydantic import BaseModel

from crewup.models.activity import ActivityType


class ActivityOut(BaseModel):
    type: ActivityType
    label: str
    emoji: str
    prompts: List[str]


class ActivityCatalogResponse(BaseModel):
    activities: List[ActivityOut]
