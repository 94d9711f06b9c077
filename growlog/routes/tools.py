from flask_restx import Namespace, Resource, inputs

from growlog.services.calculators import (
    DLI_RANGES, MAX_TEMPERATURE, MIN_TEMPERATURE, calculate_co2, calculate_dli, calculate_nutrients, calculate_vpd,
    estimate_harvest_date
)

tools_ns = Namespace('tools', description='Grow calculators (VPD, DLI, CO2, nutrients, harvest date)')

vpd_parser = tools_ns.parser()
vpd_parser.add_argument('temperature', type=float, required=True, location='args', help='Air temperature in Celsius')
vpd_parser.add_argument('humidity', type=float, required=True, location='args', help='Relative humidity in percent')
vpd_parser.add_argument('leaf_offset', type=float, default=0.0, location='args',
                        help='Leaf temperature minus air temperature')

dli_parser = tools_ns.parser()
dli_parser.add_argument('ppfd', type=float, required=True, location='args')
dli_parser.add_argument('hours', type=float, required=True, location='args')
dli_parser.add_argument('phase', type=str, default='veg', choices=list(DLI_RANGES), location='args')

co2_parser = tools_ns.parser()
co2_parser.add_argument('width', type=float, required=True, location='args', help='Metres')
co2_parser.add_argument('length', type=float, required=True, location='args', help='Metres')
co2_parser.add_argument('height', type=float, required=True, location='args', help='Metres')
co2_parser.add_argument('target', type=float, required=True, location='args', help='Target ppm')

nutrients_parser = tools_ns.parser()
nutrients_parser.add_argument('water', type=float, required=True, location='args', help='Litres')
nutrients_parser.add_argument('base', type=float, required=True, location='args', help='Base ml per litre')
nutrients_parser.add_argument('additive', type=float, default=0.0, location='args', help='Additive ml per litre')

harvest_parser = tools_ns.parser()
harvest_parser.add_argument('flower_start', type=inputs.date_from_iso8601, required=True, location='args')
harvest_parser.add_argument('weeks', type=int, required=True, location='args')


@tools_ns.route('/tools/vpd')
class VpdCalculator(Resource):
    @tools_ns.expect(vpd_parser)
    def get(self):
        args = vpd_parser.parse_args()
        if not 0 <= args['humidity'] <= 100:
            tools_ns.abort(400, error='Humidity must be between 0 and 100')
        leaf_temperature = args['temperature'] + args['leaf_offset']
        if not all(MIN_TEMPERATURE <= t <= MAX_TEMPERATURE for t in (args['temperature'], leaf_temperature)):
            tools_ns.abort(400, error=f'Temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}')
        return {'vpd': calculate_vpd(args['temperature'], args['humidity'], args['leaf_offset'])}


@tools_ns.route('/tools/dli')
class DliCalculator(Resource):
    @tools_ns.expect(dli_parser)
    def get(self):
        args = dli_parser.parse_args()
        if not 0 <= args['hours'] <= 24:
            tools_ns.abort(400, error='Hours must be between 0 and 24')
        return calculate_dli(args['ppfd'], args['hours'], args['phase'])


@tools_ns.route('/tools/co2')
class Co2Calculator(Resource):
    @tools_ns.expect(co2_parser)
    def get(self):
        args = co2_parser.parse_args()
        return calculate_co2(args['width'], args['length'], args['height'], args['target'])


@tools_ns.route('/tools/nutrients')
class NutrientCalculator(Resource):
    @tools_ns.expect(nutrients_parser)
    def get(self):
        args = nutrients_parser.parse_args()
        return calculate_nutrients(args['water'], args['base'], args['additive'])


@tools_ns.route('/tools/harvest')
class HarvestCalculator(Resource):
    @tools_ns.expect(harvest_parser)
    def get(self):
        args = harvest_parser.parse_args()
        if args['weeks'] < 0:
            tools_ns.abort(400, error='Weeks must not be negative')
        harvest = estimate_harvest_date(args['flower_start'], args['weeks'])
        return {'flower_start': args['flower_start'].isoformat(), 'harvest_date': harvest.isoformat()}
