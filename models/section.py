# models/section.py
from db import db
from sqlalchemy.sql import func
from models.bus import BUS_CATEGORIES


class Section(db.Model):
    """Flat fare for travelling N sections in a category; not tied to a route."""
    __tablename__ = "sections"
    __table_args__ = (
        db.UniqueConstraint("section_number", "category", name="uq_section_number_category"),
    )

    id             = db.Column(db.Integer, primary_key=True)
    section_number = db.Column(db.Integer, nullable=False)   # >= 1
    category       = db.Column(db.Enum(*BUS_CATEGORIES, name="section_category"), nullable=False, default="normal")
    fare           = db.Column(db.Integer, nullable=False)
    description    = db.Column(db.String(255), nullable=True)
    is_active      = db.Column(db.Boolean, nullable=False, default=True)

    created_at     = db.Column(db.DateTime, server_default=func.now(), nullable=False)
    updated_at     = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sectionNumber": self.section_number,
            "category": self.category,
            "fare": self.fare,
            "description": self.description,
            "isActive": bool(self.is_active),
        }
