"""
Store Opening Hours Model
One opening rule per store per weekday (0=Sunday ... 6=Saturday)
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, UniqueConstraint


def create_store_opening_hours_model(db):
    """
    Factory function to create StoreOpeningHours model

    Args:
        db: SQLAlchemy database instance

    Returns:
        StoreOpeningHours model class
    """

    class StoreOpeningHours(db.Model):
        __tablename__ = 'store_opening_hours'
        __table_args__ = (
            UniqueConstraint('store_id', 'day_of_week', name='uq_store_weekday'),
        )

        id = Column(Integer, primary_key=True)
        store_id = Column(String(64), nullable=False, index=True)
        day_of_week = Column(Integer, nullable=False)  # 0=Sunday
        open_time = Column(String(5), nullable=True)  # HH:MM
        close_time = Column(String(5), nullable=True)  # HH:MM
        is_closed = Column(Boolean, default=False)
        updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

        def to_dict(self):
            """Convert to the raw opening rule understood by the normalizer"""
            return {
                'day': self.day_of_week,
                'open_time': self.open_time or '',
                'close_time': self.close_time or '',
                'is_closed': bool(self.is_closed),
            }

        @classmethod
        def get_for_store(cls, store_id):
            return cls.query.filter_by(store_id=store_id).order_by(cls.day_of_week).all()

        @classmethod
        def replace_for_store(cls, store_id, rules):
            """
            Replace all opening rules of a store.

            Args:
                store_id: Store identifier
                rules: Iterable of StoreOpeningRule

            Returns:
                List of new StoreOpeningHours rows (not committed)
            """
            cls.query.filter_by(store_id=store_id).delete()
            rows = []
            for rule in rules:
                row = cls(
                    store_id=store_id,
                    day_of_week=rule.day,
                    open_time=rule.open_time or None,
                    close_time=rule.close_time or None,
                    is_closed=rule.is_closed,
                )
                db.session.add(row)
                rows.append(row)
            return rows

    return StoreOpeningHours
