"""
Shift Template Models
Reusable shift patterns and the time slots they own
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, or_
from sqlalchemy.orm import relationship


def create_shift_template_models(db):
    """
    Factory function to create ShiftTemplate and ShiftTemplateSlot models

    Args:
        db: SQLAlchemy database instance

    Returns:
        Tuple of (ShiftTemplate, ShiftTemplateSlot) model classes
    """

    class ShiftTemplate(db.Model):
        __tablename__ = 'shift_templates'

        id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
        name = Column(String(120), nullable=False)
        color = Column(String(20), nullable=False, default='#f97316')
        scope = Column(String(10), nullable=False, default='store')  # 'global' or 'store'
        store_id = Column(String(64), nullable=True, index=True)  # only for scope='store'
        is_active = Column(Boolean, default=True)
        created_at = Column(DateTime, default=datetime.utcnow)
        updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

        slots = relationship(
            'ShiftTemplateSlot',
            order_by='ShiftTemplateSlot.position',
            cascade='all, delete-orphan',
            back_populates='template',
        )

        def to_dict(self):
            """Convert to the raw template record understood by the normalizer"""
            return {
                'id': self.id,
                'name': self.name,
                'color': self.color,
                'scope': self.scope,
                'store_id': self.store_id,
                'time_slots': [slot.to_dict() for slot in self.slots],
                'is_active': self.is_active,
                'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            }

        @classmethod
        def get_for_store(cls, store_id):
            """
            Active templates usable by a store: every global template plus
            the store's own templates, ordered by name.
            """
            return cls.query.filter(
                cls.is_active == True,
                or_(cls.scope == 'global', cls.store_id == store_id)
            ).order_by(cls.name, cls.id).all()

        def __repr__(self):
            return f'<ShiftTemplate {self.id} {self.name}>'

    class ShiftTemplateSlot(db.Model):
        __tablename__ = 'shift_template_slots'
        __table_args__ = (
            UniqueConstraint('template_id', 'slot_key', name='uq_template_slot_key'),
        )

        id = Column(Integer, primary_key=True)
        template_id = Column(String(64), ForeignKey('shift_templates.id', ondelete='CASCADE'), nullable=False)
        slot_key = Column(String(64), nullable=False)  # slot id used by planning
        position = Column(Integer, nullable=False, default=0)
        start_time = Column(String(5), nullable=False)  # HH:MM
        end_time = Column(String(5), nullable=False)  # HH:MM, 24:00 allowed
        label = Column(String(100), nullable=True)
        required_staff = Column(Integer, nullable=False, default=1)

        template = relationship('ShiftTemplate', back_populates='slots')

        def to_dict(self):
            return {
                'id': self.slot_key,
                'start_time': self.start_time,
                'end_time': self.end_time,
                'label': self.label or '',
                'required_staff': self.required_staff,
            }

    return ShiftTemplate, ShiftTemplateSlot
