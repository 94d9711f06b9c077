import logging
import os
import uuid
from PIL import Image, UnidentifiedImageError
from flask import current_app
from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from growlog.auth import current_user_id
from growlog.extensions import db
from growlog.models import PlantPhoto, utcnow
from growlog.routes.plants import get_owned_plant_or_404
from growlog.utils import parse_datetime_field, upload_url

logger = logging.getLogger(__name__)

photo_ns = Namespace('photos', description='Plant photo operations')

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}

photo_model = photo_ns.model('PlantPhoto', {
    'id': fields.Integer(readonly=True),
    'plant_id': fields.Integer,
    'uploaded_by': fields.Integer,
    'file_path': fields.String,
    'url': fields.String(attribute=lambda photo: upload_url(photo.file_path)),
    'caption': fields.String,
    'taken_at': fields.DateTime,
    'created_at': fields.DateTime
})

# upload image parser
upload_parser = photo_ns.parser()
upload_parser.add_argument('photo', location='files', type=FileStorage, required=True)
# form fields sent along with the file
upload_parser.add_argument('caption', location='form', type=str, required=False)
upload_parser.add_argument('taken_at', location='form', type=str, required=False)


def validate_image_format(filename):
    if not filename or "." not in filename:
        return False
    ext = os.path.splitext(filename)[1].lower()
    return ext in ALLOWED_EXTENSIONS


def is_image(stream):
    try:
        Image.open(stream).verify()
        return True
    except (UnidentifiedImageError, OSError, SyntaxError):
        return False
    finally:
        stream.seek(0)


def store_upload(file):
    """Save an uploaded image under a unique name and return its path."""
    folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(folder, exist_ok=True)
    ext = os.path.splitext(secure_filename(file.filename))[1].lower()
    path = os.path.join(folder, f"{int(utcnow().timestamp() * 1000)}-{uuid.uuid4().hex[:12]}{ext}")
    file.save(path)
    return path


@photo_ns.route('/plants/<int:id>/photos')
class PlantPhotoList(Resource):
    method_decorators = [jwt_required()]

    # get: newest uploads first
    @photo_ns.marshal_list_with(photo_model)
    def get(self, id):
        plant = get_owned_plant_or_404(id)
        return PlantPhoto.query.filter_by(plant_id=plant.id).order_by(PlantPhoto.created_at.desc()).all()

    # post: multipart upload, images only
    @photo_ns.expect(upload_parser)
    @photo_ns.marshal_with(photo_model, code=201)
    def post(self, id):
        plant = get_owned_plant_or_404(id)
        args = upload_parser.parse_args()
        file = args['photo']

        if not validate_image_format(file.filename) or not is_image(file.stream):
            photo_ns.abort(400, error='Only image uploads are allowed')

        taken_at = parse_datetime_field(photo_ns, args, 'taken_at')
        path = store_upload(file)

        photo = PlantPhoto(plant_id=plant.id,
                           uploaded_by=current_user_id(),
                           file_path=path,
                           caption=args.get('caption'),
                           taken_at=taken_at or utcnow())
        db.session.add(photo)
        db.session.commit()
        logger.info("Stored photo %s for plant %s", photo.id, plant.id)
        return photo, 201
