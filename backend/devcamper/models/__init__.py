"""
DevCamper API: ORM Models
==========================

What:  SQLAlchemy models for the four resources.
Why imported here: Alembic and Base.metadata.create_all() only see models
       that have been imported and registered with Base.
"""

from devcamper.models.user import Role, User
from devcamper.models.bootcamp import Bootcamp, Career
from devcamper.models.course import Course, MinimumSkill
from devcamper.models.review import Review

__all__ = [
    "Bootcamp",
    "Career",
    "Course",
    "MinimumSkill",
    "Review",
    "Role",
    "User",
]
