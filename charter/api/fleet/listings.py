from flask import request

from charter.api.fleet import fleet_bp
from charter.api.tours.listings import filtered_resources, get_resource_or_404
from charter.utils.api_response import APIResponse


@fleet_bp.route('', methods=['GET'])
def list_fleet():
    """
    Fleet vehicles

    Query Parameters:
        type: helicopter | yacht | jet | supercar
    """
    vehicles = filtered_resources(request.args)
    return APIResponse.success([v.to_dict() for v in vehicles])


@fleet_bp.route('/<int:vehicle_id>', methods=['GET'])
def get_vehicle(vehicle_id):
    return APIResponse.success(get_resource_or_404(vehicle_id, active_only=True).to_dict())
