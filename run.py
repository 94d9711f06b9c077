import os
from growlog import create_app
from growlog.extensions import db
from growlog.seed import seed_plant_templates

app = create_app(os.getenv('GROWLOG_CONFIG', 'dev'))

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
        seed_plant_templates()
    app.run(host='0.0.0.0', port=int(os.getenv('PORT', 15000)), debug=app.config.get('DEBUG', False))
