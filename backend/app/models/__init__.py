from app.models.constraint import SchedulingConstraint  # noqa: F401
from app.models.faculty import Faculty  # noqa: F401
from app.models.optimization_settings import OptimizationSettingsRecord  # noqa: F401
from app.models.room import Room  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.time_slot import TimeSlot  # noqa: F401
from app.models.timetable import TimetableEntry  # noqa: F401
