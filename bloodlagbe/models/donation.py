# bloodlagbe/models/donation.py

from .base import BaseModel, db, isoformat


class Donation(BaseModel):
    """One recorded blood donation in a donor's history"""

    __tablename__ = "donations"

    id = db.Column(db.Integer, primary_key=True)
    donor_id = db.Column(db.Integer, db.ForeignKey("donors.id", ondelete="CASCADE"), nullable=False, index=True)
    donation_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    location = db.Column(db.String(255), nullable=True)

    donor = db.relationship("Donor", back_populates="donations")

    def __repr__(self):
        return f"<Donation {self.id} donor={self.donor_id}>"

    def to_dict(self):
        return {
            "id": self.id,
            "donorId": self.donor_id,
            "donationDate": isoformat(self.donation_date),
            "location": self.location,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
