from datetime import datetime, timezone
from growlog.extensions import db


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


# users table
class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='USER')
    preferences = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    last_login_at = db.Column(db.DateTime)

    grows = db.relationship('Grow', backref='owner', lazy=True, cascade="all, delete-orphan")
    notifications = db.relationship('Notification', backref='user', lazy=True, cascade="all, delete-orphan")


# grow table: a growing space, owns environments and plants
class Grow(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    location_type = db.Column(db.String(20), nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)

    environments = db.relationship('Environment', backref='grow', lazy=True, cascade="all, delete-orphan")
    environment_metrics = db.relationship('EnvironmentMetric', backref='grow', lazy=True, cascade="all, delete-orphan")
    tasks = db.relationship('Task', backref='grow', lazy=True, cascade="all, delete")
    # no cascade: a grow with plants must not be deleted
    plants = db.relationship('Plant', backref='grow', lazy=True)


# environment table: tent, room...
class Environment(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    grow_id = db.Column(db.Integer, db.ForeignKey('grow.id', ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    medium = db.Column(db.String(20), nullable=False, default='SOIL')
    light_schedule = db.Column(db.String(50))
    temperature_target = db.Column(db.Float)
    humidity_target = db.Column(db.Float)
    co2_target = db.Column(db.Float)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)

    plants = db.relationship('Plant', backref='environment', lazy=True)
    metrics = db.relationship('EnvironmentMetric', backref='environment', lazy=True)


# environment metric table: append-only climate readings
class EnvironmentMetric(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    grow_id = db.Column(db.Integer, db.ForeignKey('grow.id', ondelete="CASCADE"), nullable=False)
    environment_id = db.Column(db.Integer, db.ForeignKey('environment.id', ondelete="SET NULL"), nullable=True)
    temperature = db.Column(db.Float)
    humidity = db.Column(db.Float)
    co2 = db.Column(db.Float)
    vpd = db.Column(db.Float)
    recorded_at = db.Column(db.DateTime, default=utcnow, index=True)


# plant table
class Plant(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete="CASCADE"), nullable=False)
    grow_id = db.Column(db.Integer, db.ForeignKey('grow.id'), nullable=False)
    environment_id = db.Column(db.Integer, db.ForeignKey('environment.id', ondelete="SET NULL"), nullable=True)

    name = db.Column(db.String(120), nullable=False)
    strain = db.Column(db.String(120))
    plant_type = db.Column(db.String(20), nullable=False, default='UNKNOWN')
    sex = db.Column(db.String(20), nullable=False, default='UNKNOWN')
    start_date = db.Column(db.DateTime)
    phase = db.Column(db.String(20), nullable=False, default='GERMINATION')
    phase_started_at = db.Column(db.DateTime, default=utcnow)
    status = db.Column(db.String(20), nullable=False, default='HEALTHY')
    health_issues = db.Column(db.JSON, nullable=False, default=list)
    estimated_yield_grams = db.Column(db.Float)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)

    logs = db.relationship('PlantLog', backref='plant', lazy=True, cascade="all, delete-orphan")
    photos = db.relationship('PlantPhoto', backref='plant', lazy=True, cascade="all, delete-orphan")
    metrics = db.relationship('PlantMetric', backref='plant', lazy=True, cascade="all, delete-orphan")
    tasks = db.relationship('Task', backref='plant', lazy=True, cascade="all, delete")

    @property
    def progress(self):
        from growlog.services.progress import calculate_plant_progress
        return calculate_plant_progress(self.phase, self.plant_type, self.start_date)


# plant metric table: one row per recording event
class PlantMetric(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    plant_id = db.Column(db.Integer, db.ForeignKey('plant.id', ondelete="CASCADE"), nullable=False)
    height_cm = db.Column(db.Float)
    node_count = db.Column(db.Integer)
    ph = db.Column(db.Float)
    ec = db.Column(db.Float)
    temperature_c = db.Column(db.Float)
    humidity_pct = db.Column(db.Float)
    notes = db.Column(db.Text)
    recorded_at = db.Column(db.DateTime, default=utcnow, index=True)


# plant log table: the grow journal
class PlantLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    plant_id = db.Column(db.Integer, db.ForeignKey('plant.id', ondelete="CASCADE"), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id', ondelete="CASCADE"), nullable=False)
    type = db.Column(db.String(30), nullable=False, default='NOTE')
    title = db.Column(db.String(200))
    content = db.Column(db.Text)
    tags = db.Column(db.JSON, nullable=False, default=list)
    logged_at = db.Column(db.DateTime, default=utcnow, index=True)
    metrics_json = db.Column(db.JSON)


# plant photo table, the file itself lives in UPLOAD_FOLDER
class PlantPhoto(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    plant_id = db.Column(db.Integer, db.ForeignKey('plant.id', ondelete="CASCADE"), nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey('user.id', ondelete="CASCADE"), nullable=False)
    file_path = db.Column(db.String(255), nullable=False)
    caption = db.Column(db.String(255))
    taken_at = db.Column(db.DateTime, default=utcnow)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)


# task table
class Task(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete="CASCADE"), nullable=False)
    grow_id = db.Column(db.Integer, db.ForeignKey('grow.id', ondelete="CASCADE"), nullable=True)
    plant_id = db.Column(db.Integer, db.ForeignKey('plant.id', ondelete="CASCADE"), nullable=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    due_at = db.Column(db.DateTime, nullable=False, index=True)
    repeat_rule = db.Column(db.String(30))
    notify = db.Column(db.Boolean, nullable=False, default=False)
    notify_before_minutes = db.Column(db.Integer)
    priority = db.Column(db.String(10), nullable=False, default='MEDIUM')
    status = db.Column(db.String(10), nullable=False, default='OPEN')
    created_at = db.Column(db.DateTime, default=utcnow)


# notification table: simple inbox
class Notification(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False, default='info')
    read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)


# plant template table: read-only reference data
class PlantTemplate(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    strain = db.Column(db.String(120))
    plant_type = db.Column(db.String(20), nullable=False, default='UNKNOWN')
    breeder = db.Column(db.String(120))
    flowering_weeks = db.Column(db.Integer)
