"""User model: session owner. No authentication semantics."""

from datetime import datetime, timezone

from devicelab.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(150), default="")
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    sessions = db.relationship(
        "TestSession",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def to_ref(self):
        """Public projection embedded in session payloads (id/email/name only)."""
        return {"id": self.id, "email": self.email, "name": self.name}

    def to_dict(self):
        d = self.to_ref()
        d["created_at"] = self.created_at.isoformat() if self.created_at else None
        return d

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"
