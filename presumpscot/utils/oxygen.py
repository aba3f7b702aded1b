"""溶氧計算工具

使用 Benson & Krause（APHA 4500-O）公式計算淡水在一大氣壓下的飽和溶氧濃度
"""

from typing import Union

import numpy as np
import pandas as pd


# 攝氏轉絕對溫度
KELVIN_OFFSET = 273.15

# Benson & Krause 係數
BK_COEFFICIENTS = (
    -139.34411,
    1.575701e5,
    -6.642308e7,
    1.243800e10,
    -8.621949e11,
)

ArrayLike = Union[float, np.ndarray, pd.Series]


def oxygen_saturation(temperature: ArrayLike) -> ArrayLike:
    """計算飽和溶氧濃度 (mg/L)

    Args:
        temperature: 水溫 (°C)，可為純量、numpy 陣列或 pandas Series

    Returns:
        與輸入同形狀的飽和溶氧濃度；缺失水溫回傳 NaN
    """
    kelvin = np.asarray(temperature, dtype=float) + KELVIN_OFFSET
    a0, a1, a2, a3, a4 = BK_COEFFICIENTS

    ln_c = a0 + a1 / kelvin + a2 / kelvin**2 + a3 / kelvin**3 + a4 / kelvin**4
    result = np.exp(ln_c)

    if isinstance(temperature, pd.Series):
        return pd.Series(result, index=temperature.index, name="DO_Sat")
    if np.ndim(result) == 0:
        return float(result)
    return result


def percent_saturation(dissolved_oxygen: ArrayLike, temperature: ArrayLike) -> ArrayLike:
    """由溶氧濃度與水溫計算飽和度百分比

    Args:
        dissolved_oxygen: 溶氧濃度 (mg/L)
        temperature: 水溫 (°C)

    Returns:
        飽和度 (%)
    """
    saturation = np.asarray(oxygen_saturation(temperature), dtype=float)

    if isinstance(dissolved_oxygen, pd.Series):
        return dissolved_oxygen / saturation * 100

    result = np.asarray(dissolved_oxygen, dtype=float) / saturation * 100
    if np.ndim(result) == 0:
        return float(result)
    return result
