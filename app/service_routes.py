from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from app import db
from app.auth import login_required
from app.errors import error_response
from app.models import Service
from app.rating_routes import fetch_rating_aggregates
from app.utils import (
    check_length,
    clean_text,
    json_body,
    normalize_equity_percentage,
    parse_optional_id,
    parse_pagination,
    parse_positive_int,
    parse_price,
)

service_bp = Blueprint('services', __name__)


def _aggregates_or_nulls(service_ids):
    """Rating aggregates for the listing; a failing query degrades to nulls."""
    try:
        return fetch_rating_aggregates(service_ids)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning(f"Rating aggregation failed, returning null aggregates: {e}")
        return {sid: {'avgRating': None, 'ratingsCount': 0} for sid in service_ids}


def _load_owned_service(service_id):
    """
    Fetch a service for mutation. Returns (service, None) or (None, error response).
    """
    service = db.session.get(Service, service_id)
    if not service:
        return None, error_response('Service not found', 404)
    if service.user_id != request.user['id']:
        return None, error_response('Unauthorized', 403)
    return service, None


# GET /api/services?userId=123&limit=12&offset=0
@service_bp.route('', methods=['GET'])
def list_services():
    user_id = parse_optional_id(request.args.get('userId'), 'userId')
    limit, offset = parse_pagination(default_limit=12, max_limit=50)

    try:
        query = Service.query
        if user_id:
            query = query.filter(Service.user_id == user_id)
        total = query.count()
        services = (
            query.order_by(Service.created_at.desc(), Service.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
    except SQLAlchemyError as e:
        current_app.logger.error(f"[ERROR] Fetch services error: {e}")
        return error_response('Failed to fetch services', 500)

    aggregates = _aggregates_or_nulls([service.id for service in services])
    current_app.logger.debug(f"[DEBUG] Retrieved {len(services)} of {total} services.")

    response = jsonify({
        'success': True,
        'services': [service.to_dict(aggregates[service.id]) for service in services],
        'limit': limit,
        'offset': offset,
        'total': total,
        'hasMore': offset + len(services) < total,
    })
    response.headers['Cache-Control'] = 'private, max-age=15'
    return response, 200


@service_bp.route('/<service_id>', methods=['GET'])
def get_service(service_id):
    service_id = parse_positive_int(service_id, 'Service id')
    service = db.session.get(Service, service_id)
    if not service:
        return error_response('Service not found', 404)

    aggregates = _aggregates_or_nulls([service.id])
    return jsonify({'success': True, 'service': service.to_dict(aggregates[service.id])}), 200


# Create a service
@service_bp.route('', methods=['POST'])
@login_required
def create_service():
    data = json_body()
    title = check_length(clean_text(data.get('title')), Service.title, 'Title')
    description = clean_text(data.get('description'))

    if not title or not description:
        return error_response('Title and description are required', 400)

    price = parse_price(data.get('price')) if data.get('price') not in (None, '') else 0.0
    equity = None
    if data.get('equityPercentage') not in (None, ''):
        equity = normalize_equity_percentage(data.get('equityPercentage'))
    needs = clean_text(data.get('needs')) or None

    try:
        service = Service(
            user_id=request.user['id'],
            title=title,
            description=description,
            price=price,
            equity_percentage=equity,
            needs=needs,
        )
        db.session.add(service)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[ERROR] Create service error: {e}")
        return error_response('Failed to create service', 500)

    return jsonify({'success': True, 'service': service.to_dict()}), 201


# Update a service (owner only)
@service_bp.route('/<service_id>', methods=['PUT'])
@login_required
def update_service(service_id):
    service_id = parse_positive_int(service_id, 'Service id')
    service, error = _load_owned_service(service_id)
    if error:
        return error

    data = json_body()
    updates = {}
    if isinstance(data.get('title'), str) and data['title'].strip():
        updates['title'] = check_length(data['title'].strip(), Service.title, 'Title')
    if isinstance(data.get('description'), str) and data['description'].strip():
        updates['description'] = data['description'].strip()
    if data.get('price') is not None:
        updates['price'] = parse_price(data.get('price'))
    if 'equityPercentage' in data:
        raw_equity = data.get('equityPercentage')
        updates['equity_percentage'] = (
            None if raw_equity in (None, '') else normalize_equity_percentage(raw_equity)
        )
    if 'needs' in data:
        updates['needs'] = clean_text(data.get('needs')) or None

    try:
        for field, value in updates.items():
            setattr(service, field, value)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[ERROR] Update service error: {e}")
        return error_response('Failed to update service', 500)

    return jsonify({'success': True, 'service': service.to_dict()}), 200


# Delete a service (owner only)
@service_bp.route('/<service_id>', methods=['DELETE'])
@login_required
def delete_service(service_id):
    service_id = parse_positive_int(service_id, 'Service id')
    service, error = _load_owned_service(service_id)
    if error:
        return error

    try:
        db.session.delete(service)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[ERROR] Delete service error: {e}")
        return error_response('Failed to delete service', 500)

    return jsonify({'success': True, 'message': 'Service deleted'}), 200
