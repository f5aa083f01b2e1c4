"""地理計算工具

座標驗證、"lat,lon" 字串解析，
以及使用 Haversine 公式找出最近的城市。
"""

import math
from typing import Any, Optional


# 地球半徑（公里）
EARTH_RADIUS_KM = 6371.0


def validate_coordinates(latitude: Any, longitude: Any) -> bool:
    """驗證經緯度是否為有效數值且在範圍內

    緯度須介於 -90 至 90，經度須介於 -180 至 180。
    """
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return False

    if math.isnan(lat) or math.isnan(lon):
        return False

    return -90 <= lat <= 90 and -180 <= lon <= 180


def parse_location(location: str) -> Optional[tuple[float, float]]:
    """解析 "lat,lon" 格式的座標字串

    Returns:
        (緯度, 經度)，格式或範圍不正確時回傳 None
    """
    if not location or "," not in location:
        return None

    lat_text, _, lon_text = location.partition(",")
    if not validate_coordinates(lat_text.strip(), lon_text.strip()):
        return None
    return float(lat_text), float(lon_text)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """兩點間的大圓距離（公里）"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def find_nearest(
    latitude: float,
    longitude: float,
    places: dict[str, tuple[float, float]],
) -> Optional[tuple[str, float]]:
    """找出離座標最近的地點

    Args:
        latitude: 緯度
        longitude: 經度
        places: 地點名稱對應 (緯度, 經度)

    Returns:
        (地點名稱, 距離公里數，取到小數 2 位)；places 為空時回傳 None
    """
    if not places:
        return None

    distances = {
        name: haversine_distance(latitude, longitude, lat, lon)
        for name, (lat, lon) in places.items()
    }
    name = min(distances, key=distances.get)
    return name, round(distances[name], 2)
