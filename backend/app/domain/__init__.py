from app.domain.entities import (  # noqa: F401
    Constraint,
    ConstraintKind,
    ConstraintPriority,
    Faculty,
    HoursWindow,
    Room,
    RoomType,
    SessionType,
    Subject,
    TimeSlot,
    WeekType,
)
from app.domain.schedule import (  # noqa: F401
    ConflictPair,
    Schedule,
    ScheduleEntry,
    SessionRequest,
    UnresolvedSession,
)
from app.domain.run import ProgressUpdate, RunMetrics, RunState, RunStatus  # noqa: F401
