"""
DevCamper API — ORM Models
============================

Both models are imported here so the Bootcamp <-> Course relationship can
resolve its string targets no matter which module is imported first.
"""

from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course

__all__ = ["Bootcamp", "Course"]
