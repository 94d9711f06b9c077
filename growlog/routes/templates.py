from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields

from growlog.models import PlantTemplate

template_ns = Namespace('templates', description='Plant templates used to prefill new plants')

template_model = template_ns.model('PlantTemplate', {
    'id': fields.Integer,
    'name': fields.String,
    'strain': fields.String,
    'plant_type': fields.String,
    'breeder': fields.String,
    'flowering_weeks': fields.Integer
})


@template_ns.route('/templates/plants')
class PlantTemplateList(Resource):
    method_decorators = [jwt_required()]

    @template_ns.marshal_list_with(template_model)
    def get(self):
        return PlantTemplate.query.order_by(PlantTemplate.name.asc()).all()
