import logging
import os
import pandas as pd
from flask import current_app

from growlog.extensions import bcrypt, db
from growlog.models import PlantTemplate, User

logger = logging.getLogger(__name__)

TEMPLATE_COLUMNS = ['name', 'strain', 'plant_type', 'breeder', 'flowering_weeks']


def _cell(row, column):
    value = row.get(column)
    return value if pd.notna(value) else None


def seed_plant_templates(csv_path=None):
    """Load the plant template catalogue from CSV into an empty table.

    Returns the number of rows inserted.
    """
    if PlantTemplate.query.first() is not None:
        return 0

    csv_path = csv_path or current_app.config['PLANT_TEMPLATES_CSV']
    if not os.path.exists(csv_path):
        logger.warning("Plant template file '%s' not found", csv_path)
        return 0

    logger.info("Seeding plant templates from: %s", csv_path)
    df = pd.read_csv(csv_path)
    missing = set(TEMPLATE_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Plant template file is missing columns: {', '.join(sorted(missing))}")

    for _, row in df.iterrows():
        weeks = _cell(row, 'flowering_weeks')
        db.session.add(PlantTemplate(
            name=row['name'],
            strain=_cell(row, 'strain'),
            plant_type=_cell(row, 'plant_type') or 'UNKNOWN',
            breeder=_cell(row, 'breeder'),
            flowering_weeks=int(weeks) if weeks is not None else None
        ))
    db.session.commit()
    logger.info("Seeded %d plant templates", len(df))
    return len(df)


def seed_admin_user(email, password):
    email = email.strip().lower()
    user = User.query.filter_by(email=email).first()
    if user:
        return user

    user = User(email=email,
                password_hash=bcrypt.generate_password_hash(password).decode('utf-8'),
                role='ADMIN')
    db.session.add(user)
    db.session.commit()
    logger.info("Created admin user %s", email)
    return user
