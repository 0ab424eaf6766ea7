from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from app import db
from app.auth import login_required
from app.errors import error_response
from app.models import Message, Service, User
from app.utils import (
    check_length,
    clean_text,
    json_body,
    parse_optional_id,
    parse_pagination,
    parse_positive_int,
)

message_bp = Blueprint('messages', __name__)

DEFAULT_SUBJECT = 'Message from CodeCrowds'

PARTICIPANTS = (
    selectinload(Message.sender),
    selectinload(Message.receiver),
    selectinload(Message.service),
)


def thread_query(user_id, other_user_id, service_id=None):
    """
    Messages exchanged between two users in either direction, oldest first.

    With a service id only messages about that service match; without one
    only messages that carry no service match.
    """
    pair = or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
        and_(Message.sender_id == other_user_id, Message.receiver_id == user_id),
    )
    if service_id is None:
        scope = Message.service_id.is_(None)
    else:
        scope = Message.service_id == service_id
    return (
        Message.query
        .options(*PARTICIPANTS)
        .filter(pair, scope)
        .order_by(Message.created_at.asc(), Message.id.asc())
    )


def _paginated_listing(filter_clause, label):
    limit, offset = parse_pagination(default_limit=20, max_limit=100)
    try:
        query = Message.query.filter(filter_clause)
        total = query.count()
        messages = (
            query.options(*PARTICIPANTS)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
    except SQLAlchemyError as e:
        current_app.logger.error(f"[ERROR] Error loading {label}: {e}")
        return error_response(f'Failed to load {label}.', 500)

    return jsonify({
        'success': True,
        'messages': [message.to_dict() for message in messages],
        'limit': limit,
        'offset': offset,
        'total': total,
        'hasMore': offset + len(messages) < total,
    }), 200


# Send a message
@message_bp.route('', methods=['POST'])
@login_required
def send_message():
    sender_id = request.user['id']
    data = json_body()

    if data.get('receiverId') in (None, ''):
        return error_response('receiverId is required.', 400)
    receiver_id = parse_positive_int(data.get('receiverId'), 'receiverId')
    if receiver_id == sender_id:
        return error_response('You cannot send a message to yourself.', 400)

    content = clean_text(data.get('content'))
    if not content:
        return error_response('Message content cannot be empty.', 400)

    service_id = parse_optional_id(data.get('serviceId'), 'serviceId')
    subject = check_length(clean_text(data.get('subject')), Message.subject, 'subject') or DEFAULT_SUBJECT

    try:
        if not db.session.get(User, receiver_id):
            return error_response('Receiver not found.', 404)
        if service_id is not None and not db.session.get(Service, service_id):
            return error_response('Service not found.', 404)

        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            service_id=service_id,
            subject=subject,
            content=content,
        )
        db.session.add(message)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"[ERROR] Error creating message: {e}")
        return error_response('Failed to send message.', 500)

    current_app.logger.debug(f"[DEBUG] Message {message.id} saved from {sender_id} to {receiver_id}")
    return jsonify({'success': True, 'message': message.to_dict()}), 201


# All messages received by the current user
@message_bp.route('/inbox', methods=['GET'])
@login_required
def inbox():
    return _paginated_listing(Message.receiver_id == request.user['id'], 'inbox messages')


# All messages sent by the current user
@message_bp.route('/sent', methods=['GET'])
@login_required
def sent():
    return _paginated_listing(Message.sender_id == request.user['id'], 'sent messages')


# One conversation with a counterpart, optionally about one service
@message_bp.route('/thread/<counterpart_id>', methods=['GET'])
@login_required
def thread_with_user(counterpart_id):
    user_id = request.user['id']
    counterpart_id = parse_positive_int(counterpart_id, 'Counterpart id')
    if counterpart_id == user_id:
        return error_response('A conversation needs another participant.', 400)
    service_id = parse_optional_id(request.args.get('serviceId'), 'serviceId')

    try:
        messages = thread_query(user_id, counterpart_id, service_id).all()
    except SQLAlchemyError as e:
        current_app.logger.error(f"[ERROR] Error loading thread with {counterpart_id}: {e}")
        return error_response('Failed to load conversation thread.', 500)

    return jsonify({
        'success': True,
        'counterpartId': counterpart_id,
        'serviceId': service_id,
        'messages': [message.to_dict() for message in messages],
    }), 200


# The conversation a given message belongs to
@message_bp.route('/<message_id>/thread', methods=['GET'])
@login_required
def thread_for_message(message_id):
    user_id = request.user['id']
    message_id = parse_positive_int(message_id, 'Message id')

    try:
        root = db.session.get(Message, message_id)
        if not root:
            return error_response('Message not found.', 404)
        if user_id not in (root.sender_id, root.receiver_id):
            return error_response('You are not part of this conversation.', 403)

        other_user_id = root.receiver_id if root.sender_id == user_id else root.sender_id
        messages = thread_query(user_id, other_user_id, root.service_id).all()
    except SQLAlchemyError as e:
        current_app.logger.error(f"[ERROR] Error loading message thread: {e}")
        return error_response('Failed to load conversation thread.', 500)

    return jsonify({
        'success': True,
        'root': root.to_dict(),
        'messages': [message.to_dict() for message in messages],
    }), 200
