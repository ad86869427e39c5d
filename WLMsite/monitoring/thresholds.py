import math

from django.db import models

# ระยะเผื่อเหนือระดับต่ำสุด (หน่วยเดียวกับระดับน้ำ ไม่ปรับตามขนาดสถานี)
LOW_LEVEL_BUFFER = 1.0


class LevelStatus(models.TextChoices):
    CRITICAL = 'critical', 'Below critical minimum level'
    LOW = 'low', 'Approaching minimum threshold'
    NORMAL = 'normal', 'Within normal range'
    HIGH = 'high', 'Above maximum safe level'


def parse_level(value):
    """
    แปลงค่าที่ผู้ใช้พิมพ์เป็น float

    Returns:
        float หรือ None ถ้าว่าง/ไม่ใช่ตัวเลข/ไม่ใช่ค่าจำกัด (nan, inf)
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        level = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(level):
        return None
    return level


def evaluate_level(level, thresholds):
    """
    ประเมินสถานะระดับน้ำเทียบกับเกณฑ์ของสถานี

    Args:
        level: ระดับน้ำ (float หรือข้อความจากฟอร์ม)
        thresholds (dict): {'min': float, 'max': float}

    Returns:
        LevelStatus หรือ None ("ไม่มีสถานะ") เมื่อ input ไม่ใช่ตัวเลขหรือไม่มีเกณฑ์
    """
    level = parse_level(level)
    if level is None or not thresholds:
        return None

    limit_min = thresholds['min']
    limit_max = thresholds['max']

    if level < limit_min:
        return LevelStatus.CRITICAL
    elif level > limit_max:
        return LevelStatus.HIGH
    elif level < limit_min + LOW_LEVEL_BUFFER:
        return LevelStatus.LOW
    else:
        return LevelStatus.NORMAL


def evaluate_for_location(level, location):
    if location is None:
        return None
    return evaluate_level(level, location.thresholds)
