"""
Plant progress and yield estimation.

Progress is a display value (0-100) derived from phase, plant type and age.
It is never persisted.
"""
import math
from growlog.models import utcnow

PHASE_THRESHOLDS = {
    'GERMINATION': 10,
    'VEGETATIVE': 50,
    'FLOWERING': 90,
    'DRYING': 95,
    'FINISHED': 100
}

# assumed phase lengths in days
DEFAULT_PHASE_DURATIONS = {
    'germination': 14,
    'vegetative': 60,
    'flowering': 70,
    'drying': 10,
    'autoflower': 90
}

AUTOFLOWER_BASE_YIELD = 50
DEFAULT_BASE_YIELD = 100
STATUS_YIELD_FACTORS = {'ISSUES': 0.8, 'SICK': 0.5}


def js_round(value):
    # half up, like the progress bars in the client
    return math.floor(value + 0.5)


def plant_age_days(start_date, now=None):
    now = now or utcnow()
    return math.floor((now - start_date).total_seconds() / 86400)


def calculate_plant_progress(phase, plant_type, start_date, now=None, durations=None):
    """Map (phase, plant_type, start_date) to a 0-100 percentage.

    Future start dates are not guarded against: a negative age flows through
    the germination formula and can yield a negative value.
    """
    if not start_date:
        return 0

    durations = durations or DEFAULT_PHASE_DURATIONS
    age = plant_age_days(start_date, now)

    if phase in ('FINISHED', 'CURED'):
        return PHASE_THRESHOLDS['FINISHED']
    if phase == 'DRYING':
        return PHASE_THRESHOLDS['DRYING']

    if plant_type == 'AUTOFLOWER':
        return min(100, js_round(age / durations['autoflower'] * 100))

    germination = PHASE_THRESHOLDS['GERMINATION']
    vegetative = PHASE_THRESHOLDS['VEGETATIVE']
    flowering = PHASE_THRESHOLDS['FLOWERING']

    if phase == 'GERMINATION':
        return min(germination, js_round(age / durations['germination'] * germination))

    if phase == 'VEGETATIVE':
        veg_days = max(0, age - durations['germination'])
        return min(vegetative, germination + js_round(veg_days / durations['vegetative'] * (vegetative - germination)))

    if phase == 'FLOWERING':
        flower_days = max(0, age - durations['germination'] - durations['vegetative'])
        return min(flowering, vegetative + js_round(flower_days / durations['flowering'] * (flowering - vegetative)))

    return 0


def estimate_yield_grams(plant):
    if plant.estimated_yield_grams:
        return js_round(plant.estimated_yield_grams)

    if plant.status == 'DEAD':
        return 0

    base = AUTOFLOWER_BASE_YIELD if plant.plant_type == 'AUTOFLOWER' else DEFAULT_BASE_YIELD
    base *= STATUS_YIELD_FACTORS.get(plant.status, 1)
    return js_round(base)
