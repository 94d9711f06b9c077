import math
from datetime import timedelta

AMBIENT_CO2_PPM = 400

# readings outside this range are rejected before any vapour pressure maths
MIN_TEMPERATURE = -50
MAX_TEMPERATURE = 70

DLI_RANGES = {
    'seedling': (10, 20),
    'veg': (20, 40),
    'flower': (35, 60),
}


def saturation_vapor_pressure(temperature):
    # kPa, temperature in Celsius
    return 0.61078 * math.exp((17.27 * temperature) / (temperature + 237.3))


def calculate_vpd(temperature, humidity, leaf_offset=0.0):
    air_svp = saturation_vapor_pressure(temperature)
    leaf_svp = saturation_vapor_pressure(temperature + leaf_offset)
    return round(leaf_svp - air_svp * (humidity / 100), 2)


def calculate_dli(ppfd, hours, phase='veg'):
    dli = (ppfd * hours * 3600) / 1000000
    low, high = DLI_RANGES[phase]
    if dli < low:
        status = 'low'
    elif dli > high:
        status = 'high'
    else:
        status = 'optimal'
    return {'dli': round(dli, 2), 'status': status, 'target_min': low, 'target_max': high}


def calculate_co2(width, length, height, target_ppm):
    volume = width * length * height
    required = (volume * (target_ppm - AMBIENT_CO2_PPM)) / 1000000

    warning = None
    if target_ppm > 5000:
        warning = 'dangerous'
    elif target_ppm > 2000:
        warning = 'high'
    return {'volume': round(volume, 2), 'required': round(required, 4), 'warning': warning}


def calculate_nutrients(water_liters, base_ml_per_liter, additive_ml_per_liter):
    return {
        'water_liters': round(water_liters, 1),
        'base_ml': round(water_liters * base_ml_per_liter, 1),
        'additive_ml': round(water_liters * additive_ml_per_liter, 1),
    }


def estimate_harvest_date(flower_start, weeks):
    return flower_start + timedelta(days=weeks * 7)
