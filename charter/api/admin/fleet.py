from flask import request

from charter.api.admin import admin_bp
from charter.api.tours.listings import (create_resource, delete_resource, filtered_resources,
                                        get_resource_or_404, update_resource)
from charter.utils.api_response import APIResponse
from charter.utils.decorators import admin_required


@admin_bp.route('/fleet', methods=['GET'])
@admin_required
def admin_list_fleet(current_user):
    """All vehicles, including deactivated ones unless ``isActive`` is given"""
    vehicles = filtered_resources(request.args, default_active=False)
    return APIResponse.success([v.to_dict() for v in vehicles])


@admin_bp.route('/fleet/<int:vehicle_id>', methods=['GET'])
@admin_required
def admin_get_vehicle(current_user, vehicle_id):
    return APIResponse.success(get_resource_or_404(vehicle_id).to_dict())


@admin_bp.route('/fleet', methods=['POST'])
@admin_required
def admin_create_vehicle(current_user):
    return create_resource(current_user, request.get_json(silent=True))


@admin_bp.route('/fleet/<int:vehicle_id>', methods=['PUT'])
@admin_required
def admin_update_vehicle(current_user, vehicle_id):
    return update_resource(current_user, vehicle_id, request.get_json(silent=True))


@admin_bp.route('/fleet/<int:vehicle_id>', methods=['DELETE'])
@admin_required
def admin_delete_vehicle(current_user, vehicle_id):
    return delete_resource(current_user, vehicle_id)
