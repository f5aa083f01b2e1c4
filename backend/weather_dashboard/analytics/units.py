"""溫度單位換算

提供兩種介面：
- convert_temperature: 明確指定來源與目標單位（建議使用）
- convert_temp: 只指定目標單位，依數值大小推斷是否已是目標單位（相容舊呼叫端）

convert_temp 的推斷規則：
- 數值落在目標單位的合理區間內視為已是目標單位，只做捨入
  - 華氏：-50 < v < 150
  - 攝氏：-45 < v <= 100
- 目標為華氏時 0 視為攝氏讀數並換算（攝氏 0 度）；目標為攝氏時 0 保留
- 其他數值由另一單位換算為目標單位
- None、非數值、NaN、無窮大回傳 0

此推斷本質上有歧義：攝氏 40 度會被當成華氏 40 度，
目標為攝氏時華氏 66 至 100 度的夏季高溫也會原樣回傳而不換算。
能取得來源單位時應改用 convert_temperature。
"""

import math
from enum import Enum
from typing import Any, Union

from weather_dashboard.analytics.engine import round_half_up


class TemperatureUnit(str, Enum):
    """溫度單位"""

    FAHRENHEIT = "F"
    CELSIUS = "C"


# 目標單位的合理區間 (下限, 上限, 是否包含上限)
PLAUSIBLE_RANGES = {
    TemperatureUnit.FAHRENHEIT: (-50.0, 150.0, False),
    TemperatureUnit.CELSIUS: (-45.0, 100.0, True),
}

# 無法解析時的回傳值
FALLBACK_TEMPERATURE = 0


def _parse_unit(unit: Union[str, TemperatureUnit]) -> TemperatureUnit:
    try:
        return TemperatureUnit(unit.upper() if isinstance(unit, str) else unit)
    except ValueError:
        raise ValueError(f"不支援的溫度單位: {unit!r}（僅支援 'F' 或 'C'）") from None


def _to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def _to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32) * 5 / 9


def _is_plausible(value: float, unit: TemperatureUnit) -> bool:
    low, high, include_high = PLAUSIBLE_RANGES[unit]
    if value == 0 and unit == TemperatureUnit.FAHRENHEIT:
        return False
    if include_high:
        return low < value <= high
    return low < value < high


def convert_temperature(
    value: float,
    from_unit: Union[str, TemperatureUnit],
    to_unit: Union[str, TemperatureUnit],
) -> int:
    """以明確的來源單位換算溫度，結果捨入為整數

    Raises:
        ValueError: 單位不是 'F' 或 'C'
    """
    source = _parse_unit(from_unit)
    target = _parse_unit(to_unit)

    if source == target:
        return round_half_up(value)
    if target == TemperatureUnit.FAHRENHEIT:
        return round_half_up(_to_fahrenheit(value))
    return round_half_up(_to_celsius(value))


def convert_temp(value: Any, target_unit: Union[str, TemperatureUnit]) -> int:
    """只指定目標單位的溫度換算（依數值大小推斷來源單位）

    例如：
        convert_temp(32, "F") == 32    # 已在華氏區間內
        convert_temp(0, "F") == 32     # 0 視為攝氏讀數
        convert_temp(100, "C") == 100  # 已在攝氏區間內
        convert_temp(212, "C") == 100  # 超出攝氏區間，由華氏換算
        convert_temp(80, "C") == 80    # 華氏夏季高溫落在攝氏區間內，不會換算

    來源單位已知時請改用 convert_temperature。

    Raises:
        ValueError: 目標單位不是 'F' 或 'C'
    """
    target = _parse_unit(target_unit)

    if value is None or isinstance(value, bool):
        return FALLBACK_TEMPERATURE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return FALLBACK_TEMPERATURE
    if not math.isfinite(number):
        return FALLBACK_TEMPERATURE

    if _is_plausible(number, target):
        return round_half_up(number)

    if target == TemperatureUnit.FAHRENHEIT:
        return convert_temperature(number, TemperatureUnit.CELSIUS, target)
    return convert_temperature(number, TemperatureUnit.FAHRENHEIT, target)
