from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from app import db
from app.auth import login_required
from app.errors import ApiError, error_response
from app.models import Rating, Service
from app.utils import clean_text, json_body, parse_optional_id, parse_pagination, parse_positive_int

rating_bp = Blueprint('ratings', __name__)

MIN_SCORE = 1
MAX_SCORE = 5

RATING_AGGREGATE_QUERY = text("""
    SELECT service_id, AVG(score) AS avg_rating, COUNT(*) AS ratings_count
    FROM ratings
    WHERE service_id IN :ids
    GROUP BY service_id
""").bindparams(bindparam('ids', expanding=True))


def fetch_rating_aggregates(service_ids):
    """
    Average score and rating count per service in one grouped query.

    Every requested id gets an entry; services without ratings map to
    avgRating None and ratingsCount 0. Database errors propagate to the caller.
    """
    service_ids = sorted(set(service_ids))
    aggregates = {sid: {'avgRating': None, 'ratingsCount': 0} for sid in service_ids}
    if not service_ids:
        return aggregates

    rows = db.session.execute(RATING_AGGREGATE_QUERY, {'ids': service_ids}).fetchall()
    for row in rows:
        aggregates[row[0]] = {
            'avgRating': round(float(row[1]), 2) if row[1] is not None else None,
            'ratingsCount': int(row[2]),
        }
    return aggregates


def _parse_score(value):
    if isinstance(value, bool) or value is None:
        raise ApiError(f'Score must be an integer between {MIN_SCORE} and {MAX_SCORE}')
    try:
        score = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ApiError(f'Score must be an integer between {MIN_SCORE} and {MAX_SCORE}')
    if not score.is_integer() or not MIN_SCORE <= score <= MAX_SCORE:
        raise ApiError(f'Score must be an integer between {MIN_SCORE} and {MAX_SCORE}')
    return int(score)


# Rate a service
@rating_bp.route('', methods=['POST'])
@login_required
def create_rating():
    user_id = request.user['id']
    data = json_body()

    if data.get('serviceId') in (None, ''):
        return error_response('serviceId is required', 400)
    service_id = parse_positive_int(data.get('serviceId'), 'serviceId')
    score = _parse_score(data.get('score'))
    comment = clean_text(data.get('comment')) or None

    try:
        service = db.session.get(Service, service_id)
        if not service:
            return error_response('Service not found', 404)
        if service.user_id == user_id:
            return error_response('You cannot rate your own service', 403)

        rating = Rating(user_id=user_id, service_id=service_id, score=score, comment=comment)
        db.session.add(rating)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[ERROR] Failed to save rating: {e}")
        return error_response('Failed to save rating', 500)

    return jsonify({'success': True, 'rating': rating.to_dict()}), 201


# List ratings, optionally for one service
@rating_bp.route('', methods=['GET'])
def list_ratings():
    service_id = parse_optional_id(request.args.get('serviceId'), 'serviceId')
    limit, offset = parse_pagination(default_limit=20, max_limit=100)

    try:
        query = Rating.query
        if service_id:
            query = query.filter(Rating.service_id == service_id)
        total = query.count()
        ratings = (
            query.order_by(Rating.created_at.desc(), Rating.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
    except SQLAlchemyError as e:
        current_app.logger.error(f"[ERROR] Failed to fetch ratings: {e}")
        return error_response('Failed to fetch ratings', 500)

    return jsonify({
        'success': True,
        'ratings': [rating.to_dict() for rating in ratings],
        'limit': limit,
        'offset': offset,
        'total': total,
        'hasMore': offset + len(ratings) < total,
    }), 200


# Aggregate summary for a set of services: ?serviceIds=1,2,3
@rating_bp.route('/summary', methods=['GET'])
def rating_summary():
    raw_ids = [part.strip() for part in request.args.get('serviceIds', '').split(',') if part.strip()]
    if not raw_ids:
        return error_response('serviceIds is required', 400)
    service_ids = [parse_positive_int(raw, 'serviceIds') for raw in raw_ids]

    try:
        aggregates = fetch_rating_aggregates(service_ids)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[ERROR] Rating aggregation failed: {e}")
        return error_response('Failed to compute ratings', 500)

    summary = [
        {'serviceId': sid, 'avgRating': agg['avgRating'], 'ratingsCount': agg['ratingsCount']}
        for sid, agg in aggregates.items()
    ]
    return jsonify({'success': True, 'summary': summary}), 200
