"""
Saved design model - a markup session stored as a JSON payload
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import Column, DateTime, Float, Integer, JSON, String

from .database import Base, get_session
from .design_state import DesignState
from .serialization import design_state_from_dict, design_state_to_dict

logger = logging.getLogger(__name__)


class SavedDesign(Base):
    """One saved markup session"""
    __tablename__ = 'saved_designs'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    project_id = Column(Integer, nullable=True)
    drawing_path = Column(String(1000))  # Background drawing the markup was made on

    # Denormalized for listings; the payload is authoritative
    design_purpose = Column(String(50))
    scale_ratio = Column(Float)  # Meters per pixel

    payload = Column(JSON, nullable=False)

    created_date = Column(DateTime, default=datetime.utcnow)
    modified_date = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SavedDesign(id={self.id}, name='{self.name}', project_id={self.project_id})>"

    def to_state(self) -> DesignState:
        return design_state_from_dict(self.payload)


class DesignRepository:
    """Save, load and list designs through a session factory"""

    def __init__(self, session_factory: Optional[Callable] = None):
        self.session_factory = session_factory or get_session

    def save(self, state: DesignState, name: str, design_id: Optional[int] = None,
             project_id: Optional[int] = None, drawing_path: Optional[str] = None) -> int:
        """Insert a new design, or overwrite design_id. Returns the row id."""
        if not name or not name.strip():
            raise ValueError("Design name is required")
        payload = design_state_to_dict(state)
        session = self.session_factory()
        try:
            if design_id is not None:
                record = session.get(SavedDesign, design_id)
                if record is None:
                    raise KeyError(f"No saved design with id {design_id}")
            else:
                record = SavedDesign()
                session.add(record)
            record.name = name.strip()
            if project_id is not None:
                record.project_id = project_id
            if drawing_path is not None:
                record.drawing_path = drawing_path
            record.design_purpose = state.design_purpose.value if state.design_purpose else None
            record.scale_ratio = state.ratio
            record.payload = payload
            session.commit()
            logger.info("Saved design %s (%s)", record.id, record.name)
            return record.id
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def load(self, design_id: int) -> DesignState:
        session = self.session_factory()
        try:
            record = session.get(SavedDesign, design_id)
            if record is None:
                raise KeyError(f"No saved design with id {design_id}")
            return record.to_state()
        finally:
            session.close()

    def list_designs(self, project_id: Optional[int] = None) -> List[SavedDesign]:
        """Saved designs, most recently modified first"""
        session = self.session_factory()
        try:
            query = session.query(SavedDesign)
            if project_id is not None:
                query = query.filter(SavedDesign.project_id == project_id)
            return query.order_by(SavedDesign.modified_date.desc(), SavedDesign.id.desc()).all()
        finally:
            session.close()

    def delete(self, design_id: int) -> bool:
        session = self.session_factory()
        try:
            record = session.get(SavedDesign, design_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            logger.info("Deleted design %s", design_id)
            return True
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
