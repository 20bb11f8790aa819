# 활동 카탈로그 API (라벨/이모지/추천 문구)
from fastapi import APIRouter

from crewup.models.activity import ActivityType
from crewup.schemas.activity import ActivityCatalogResponse, ActivityOut

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.get("", response_model=ActivityCatalogResponse)
def get_activities() -> ActivityCatalogResponse:
    return ActivityCatalogResponse(
        activities=[ActivityOut(type=t, label=t.label, emoji=t.emoji, prompts=t.prompts) for t in ActivityType]
    )
