# 공통 응답 스키마

from typing import Optional

from pydantic import BaseModel


class ProfileOut(BaseModel):
    """디렉터리에서 조회한 표시용 프로필 (이름 폴백 적용 후)."""

    user_id: str
    display_name: str
    image_url: Optional[str] = None


def profile_out(profile) -> ProfileOut:
    return ProfileOut(user_id=profile.user_id, display_name=profile.display_name, image_url=profile.image_url)
