# Public interface of the pitchdeck package: database handles and the table
# blueprints. Services, schemas and routers are imported from their modules.

from .core.database import Base, engine, SessionLocal, get_db
from .models import (
    User,
    Template,
    Presentation,
    PresentationVersion,
    ViewSession,
    PresentationAnalytics,
)

__all__ = [
    # Database Core
    'Base',
    'engine',
    'SessionLocal',
    'get_db',

    # Models
    'User',
    'Template',
    'Presentation',
    'PresentationVersion',
    'ViewSession',
    'PresentationAnalytics',
]
