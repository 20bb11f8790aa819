# crud 공통 입력 검증: 모든 검증은 쓰기 전에 수행 (fail-fast)

from typing import Optional

from crewup.errors import ValidationError
from crewup.models.activity import ActivityType, parse_activity_type
from crewup.services.geo import is_valid_coordinate


def require_coordinates(lat: float, lng: float) -> None:
    if not is_valid_coordinate(lat, lng):
        raise ValidationError(f"Invalid coordinates: lat={lat}, lng={lng}")


def require_activity_type(value) -> ActivityType:
    if value is None:
        raise ValidationError("activity_type is required")
    try:
        return parse_activity_type(value)
    except ValueError:
        raise ValidationError(f"Invalid activity_type: {value}")


def clean_optional_text(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    """앞뒤 공백 제거. 빈 문자열은 None, 최대 길이 초과는 ValidationError."""
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    if len(cleaned) > max_length:
        raise ValidationError(f"{field} must be {max_length} characters or less")
    return cleaned
