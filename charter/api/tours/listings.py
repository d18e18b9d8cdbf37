from flask import current_app, request

from charter.api.tours import tours_bp
from charter.api.tours.schemas import CatalogueSchemas
from charter.errors import NotFoundError
from charter.extensions import db
from charter.models import AvailabilitySlot, Resource
from charter.models.enums import ResourceType
from charter.services.review import ReviewService
from charter.utils.api_response import APIResponse
from charter.utils.audit_logging import AuditLogger
from charter.utils.decorators import admin_required


def get_resource_or_404(resource_id, active_only=False):
    resource = db.session.get(Resource, resource_id)
    if resource is None or (active_only and not resource.is_active):
        raise NotFoundError('Tour not found')
    return resource


def filtered_resources(args, default_active=True):
    query = Resource.query
    resource_type = args.get('type')
    if resource_type:
        try:
            query = query.filter(Resource.type == ResourceType(resource_type.lower()))
        except ValueError:
            return []

    is_active = args.get('isActive')
    if is_active is None:
        if default_active:
            query = query.filter(Resource.is_active.is_(True))
    else:
        query = query.filter(Resource.is_active.is_(is_active.lower() in ('1', 'true', 'yes')))
    return query.order_by(Resource.name).all()


def create_resource(current_user, data):
    is_valid, errors, cleaned = CatalogueSchemas.validate_resource(data)
    if not is_valid:
        return APIResponse.validation_error(errors)

    cleaned.setdefault('currency', current_app.config.get('DEFAULT_CURRENCY', 'AED'))
    resource = Resource(**cleaned)
    db.session.add(resource)
    db.session.commit()

    AuditLogger.log_action(current_user.id, 'resource_created', 'resource', resource.id,
                           f"Created {resource.type.value} '{resource.name}'")
    return APIResponse.created(resource.to_dict(), 'Created successfully')


def update_resource(current_user, resource_id, data):
    resource = get_resource_or_404(resource_id)
    is_valid, errors, cleaned = CatalogueSchemas.validate_resource(data, partial=True)
    if not is_valid:
        return APIResponse.validation_error(errors)

    for key, value in cleaned.items():
        setattr(resource, key, value)
    db.session.commit()

    AuditLogger.log_action(current_user.id, 'resource_updated', 'resource', resource.id,
                           f"Updated '{resource.name}'", changes={k: str(v) for k, v in cleaned.items()})
    return APIResponse.success(resource.to_dict(), 'Updated successfully')


def delete_resource(current_user, resource_id):
    """Hard delete when never booked, otherwise deactivate so history survives"""
    resource = get_resource_or_404(resource_id)
    if resource.bookings.count():
        resource.is_active = False
        db.session.commit()
        action, message = 'resource_deactivated', 'Deactivated (existing bookings kept)'
    else:
        AvailabilitySlot.query.filter_by(resource_id=resource.id).delete()
        db.session.delete(resource)
        db.session.commit()
        action, message = 'resource_deleted', 'Deleted successfully'

    AuditLogger.log_action(current_user.id, action, 'resource', resource_id, message)
    current_app.logger.info(f"Resource {resource_id}: {action}")
    return APIResponse.success(message=message)


# ==================== PUBLIC ====================

@tours_bp.route('', methods=['GET'])
def list_tours():
    tours = filtered_resources(request.args)
    return APIResponse.success([t.to_dict() for t in tours])


@tours_bp.route('/<int:tour_id>', methods=['GET'])
def get_tour(tour_id):
    return APIResponse.success(get_resource_or_404(tour_id, active_only=True).to_dict())


@tours_bp.route('/<int:tour_id>/reviews', methods=['GET'])
def tour_reviews(tour_id):
    get_resource_or_404(tour_id)
    reviews = ReviewService(db.session).list_reviews(tour_id)
    return APIResponse.success([r.to_dict() for r in reviews])


# ==================== ADMIN ====================

@tours_bp.route('', methods=['POST'])
@admin_required
def create_tour(current_user):
    return create_resource(current_user, request.get_json(silent=True))


@tours_bp.route('/<int:tour_id>', methods=['PUT'])
@admin_required
def update_tour(current_user, tour_id):
    return update_resource(current_user, tour_id, request.get_json(silent=True))


@tours_bp.route('/<int:tour_id>', methods=['DELETE'])
@admin_required
def delete_tour(current_user, tour_id):
    return delete_resource(current_user, tour_id)
