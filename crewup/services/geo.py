# 거리 계산(haversine) + 반경 검색용 BBox 선필터

import math
from typing import NamedTuple, Optional

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.2  # 위도 1도 ≈ 111.2km (2πR/360)


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    # 극지방/날짜변경선을 넘는 경우 None → 경도 필터 생략
    min_lng: Optional[float]
    max_lng: Optional[float]


def is_valid_coordinate(lat: float, lng: float) -> bool:
    if lat is None or lng is None:
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """두 위경도 사이 대원 거리(km). a = sin²(Δφ/2) + cosφ1·cosφ2·sin²(Δλ/2), d = 2R·atan2(√a, √(1−a))."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    # 부동소수 오차로 a가 1을 살짝 넘는 경우 sqrt(1 - a) 도메인 에러 방지
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """
    (lat, lng) 중심 반경 radius_km 원을 포함하는 사각형.

    DB에서 인덱스(lat, lng)로 후보를 줄이는 용도라 약간 넉넉해도 됨 (정확한 판정은 distance_km).
    """
    # 1% 여유: 경계 근처 점이 BBox에서 잘리지 않도록
    dlat = radius_km / KM_PER_DEGREE_LAT * 1.01
    min_lat = max(-90.0, lat - dlat)
    max_lat = min(90.0, lat + dlat)

    # 원이 극을 포함하면 모든 경도가 후보
    if min_lat <= -90.0 or max_lat >= 90.0:
        return BoundingBox(min_lat, max_lat, None, None)

    # 가장 극에 가까운 위도 기준으로 경도 폭 계산 (그 위도에서 경도 1도가 가장 짧음)
    extreme_lat = max(abs(min_lat), abs(max_lat))
    cos_lat = math.cos(math.radians(extreme_lat))
    if cos_lat <= 1e-9:
        return BoundingBox(min_lat, max_lat, None, None)
    dlng = dlat / cos_lat
    if dlng >= 180.0:
        return BoundingBox(min_lat, max_lat, None, None)

    min_lng = lng - dlng
    max_lng = lng + dlng
    if min_lng < -180.0 or max_lng > 180.0:
        # TODO: 날짜변경선을 넘는 경우 두 구간(OR)으로 나눠 필터하면 후보를 더 줄일 수 있음
        return BoundingBox(min_lat, max_lat, None, None)
    return BoundingBox(min_lat, max_lat, min_lng, max_lng)
