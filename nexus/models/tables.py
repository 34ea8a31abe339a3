# Imports every model so Base.metadata knows all tables (create_all, Alembic).
from nexus.models.professional import Professional  # noqa: F401
from nexus.models.student import Student, StudentProgram, StudentProfessional  # noqa: F401
from nexus.models.program import Program, Module, Activity  # noqa: F401
from nexus.models.assignment import Assignment  # noqa: F401
from nexus.models.student_activity import StudentActivity  # noqa: F401
from nexus.models.schedule import WeeklySchedule, ScheduleStudent  # noqa: F401
from nexus.models.schedule_progress import ScheduleActivityProgress  # noqa: F401
from nexus.models.point_award import PointAward  # noqa: F401
from nexus.models.observation import Observation  # noqa: F401
from nexus.models.gad7 import Gad7Assessment, Gad7StudentConfig  # noqa: F401
