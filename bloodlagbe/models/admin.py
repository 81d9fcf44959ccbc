# bloodlagbe/models/admin.py

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseModel, db, isoformat


class AdminLog(BaseModel):
    """Audit trail of administrative decisions"""

    __tablename__ = "admin_logs"

    id = db.Column(db.Integer, primary_key=True)
    admin_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    action = db.Column(db.String(100), nullable=False, index=True)
    target_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    details = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)

    admin_user = db.relationship("User", foreign_keys=[admin_user_id])
    target_user = db.relationship("User", foreign_keys=[target_user_id])

    def __repr__(self):
        return f"<AdminLog {self.action} by {self.admin_user_id}>"

    @staticmethod
    def log_action(admin_user_id, action, target_user_id=None, details=None, ip_address=None, user_agent=None):
        """Record an admin action; audit failures are logged, not raised"""
        try:
            entry = AdminLog(
                admin_user_id=admin_user_id,
                action=action,
                target_user_id=target_user_id,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent[:500] if user_agent else None,
            )
            db.session.add(entry)
            db.session.commit()
            return entry
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to record admin action {action}: {str(e)}")
            return None

    def to_dict(self):
        return {
            "id": self.id,
            "adminUserId": self.admin_user_id,
            "action": self.action,
            "targetUserId": self.target_user_id,
            "details": self.details,
            "createdAt": isoformat(self.created_at),
        }
