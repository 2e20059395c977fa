"""
Planned Shift Models
Saved plans: one row per template x day x slot for a store, with the staff
assigned to it. Template name, color and slot times are copied onto the row so
an old plan can be reloaded exactly even after the template is edited.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship


def create_planned_shift_models(db):
    """
    Factory function to create PlannedShift and PlannedShiftAssignment models

    Args:
        db: SQLAlchemy database instance

    Returns:
        Tuple of (PlannedShift, PlannedShiftAssignment) model classes
    """

    class PlannedShift(db.Model):
        __tablename__ = 'planned_shifts'
        __table_args__ = (
            UniqueConstraint('template_id', 'store_id', 'shift_date', 'slot_id', name='uq_planned_shift_key'),
        )

        id = Column(Integer, primary_key=True)
        template_id = Column(String(64), nullable=False, index=True)
        store_id = Column(String(64), nullable=False, index=True)
        shift_date = Column(Date, nullable=False, index=True)
        slot_id = Column(String(64), nullable=False)

        # Snapshot of the template slot at save time
        start_time = Column(String(5), nullable=False)
        end_time = Column(String(5), nullable=False)
        slot_label = Column(String(100), nullable=True)
        required_staff = Column(Integer, nullable=False, default=1)
        template_name = Column(String(120), nullable=False)
        template_color = Column(String(20), nullable=True)

        created_at = Column(DateTime, default=datetime.utcnow)
        updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

        assignments = relationship(
            'PlannedShiftAssignment',
            order_by='PlannedShiftAssignment.id',
            cascade='all, delete-orphan',
            back_populates='planned_shift',
        )

        def to_dict(self):
            return {
                'id': self.id,
                'template_id': self.template_id,
                'store_id': self.store_id,
                'date': self.shift_date.isoformat() if self.shift_date else None,
                'slot_id': self.slot_id,
                'start_time': self.start_time,
                'end_time': self.end_time,
                'slot_label': self.slot_label,
                'required_staff': self.required_staff,
                'template_name': self.template_name,
                'template_color': self.template_color,
                'assignments': [a.resource_id for a in self.assignments],
            }

        @classmethod
        def get_in_range(cls, store_id, start_date, end_date):
            return cls.query.filter(
                cls.store_id == store_id,
                cls.shift_date >= start_date,
                cls.shift_date <= end_date
            ).order_by(cls.shift_date, cls.template_id, cls.id).all()

        def __repr__(self):
            return f'<PlannedShift {self.store_id} {self.shift_date} {self.template_id}/{self.slot_id}>'

    class PlannedShiftAssignment(db.Model):
        __tablename__ = 'planned_shift_assignments'
        __table_args__ = (
            UniqueConstraint('planned_shift_id', 'resource_id', name='uq_planned_shift_resource'),
        )

        id = Column(Integer, primary_key=True)
        planned_shift_id = Column(Integer, ForeignKey('planned_shifts.id', ondelete='CASCADE'), nullable=False)
        resource_id = Column(String(64), nullable=False, index=True)
        resource_name = Column(String(120), nullable=True)

        planned_shift = relationship('PlannedShift', back_populates='assignments')

    return PlannedShift, PlannedShiftAssignment
