# grabcoffee/domain/geo.py
import math

EARTH_RADIUS_KM = 6371


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        0.5 - math.cos(d_lat) / 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * (1 - math.cos(d_lon)) / 2
    )
    return EARTH_RADIUS_KM * 2 * math.asin(math.sqrt(a))


def eta_minutes(distance: float, speed_kmh: float) -> int:
    #linia prosta i stala predkosc, to tylko zgrubna estymata
    if speed_kmh <= 0:
        raise ValueError("speed_kmh must be positive")
    return round(distance / speed_kmh * 60)
