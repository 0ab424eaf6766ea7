from datetime import datetime
from app import db


def _isoformat(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.Text, nullable=False)
    description = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(50), nullable=False, default='member')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    services = db.relationship('Service', back_populates='owner', lazy='select')

    def summary(self):
        return {'id': self.id, 'username': self.username, 'email': self.email}

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'description': self.description,
            'role': self.role,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }


class Service(db.Model):
    __tablename__ = 'services'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    price = db.Column(db.Float, nullable=False, default=0)
    equity_percentage = db.Column(db.Float, nullable=True)  # 0.5 .. 99.5, steps of 0.5
    needs = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = db.relationship('User', back_populates='services')
    ratings = db.relationship('Rating', back_populates='service', cascade='all, delete-orphan')
    # messages keep their row when the service goes away; service_id is nulled
    messages = db.relationship('Message', back_populates='service')

    def summary(self):
        return {'id': self.id, 'title': self.title}

    def to_dict(self, aggregates=None):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'title': self.title,
            'description': self.description,
            'price': self.price,
            'equityPercentage': self.equity_percentage,
            'needs': self.needs,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
            'owner': {'id': self.owner.id, 'username': self.owner.username} if self.owner else None,
        }
        if aggregates is not None:
            data['avgRating'] = aggregates.get('avgRating')
            data['ratingsCount'] = aggregates.get('ratingsCount', 0)
        return data


class Message(db.Model):
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    receiver_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey('services.id', ondelete='SET NULL'), nullable=True, index=True)
    subject = db.Column(db.String(255), nullable=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    sender = db.relationship('User', foreign_keys=[sender_id])
    receiver = db.relationship('User', foreign_keys=[receiver_id])
    service = db.relationship('Service', back_populates='messages')

    def to_dict(self):
        return {
            'id': self.id,
            'senderId': self.sender_id,
            'receiverId': self.receiver_id,
            'serviceId': self.service_id,
            'subject': self.subject,
            'content': self.content,
            'createdAt': _isoformat(self.created_at),
            'sender': self.sender.summary() if self.sender else None,
            'receiver': self.receiver.summary() if self.receiver else None,
            'service': self.service.summary() if self.service else None,
        }


class Rating(db.Model):
    __tablename__ = 'ratings'
    __table_args__ = (
        db.CheckConstraint('score BETWEEN 1 AND 5', name='ck_ratings_score'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey('services.id', ondelete='CASCADE'), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False)  # 1..5
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User')
    service = db.relationship('Service', back_populates='ratings')

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'serviceId': self.service_id,
            'score': self.score,
            'comment': self.comment,
            'createdAt': _isoformat(self.created_at),
            'user': {'id': self.user.id, 'username': self.user.username} if self.user else None,
        }
