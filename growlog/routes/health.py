from flask_restx import Namespace, Resource

health_ns = Namespace('health', description='Liveness check')


@health_ns.route('/health')
class HealthCheck(Resource):
    def get(self):
        return {'status': "healthy"}, 200
