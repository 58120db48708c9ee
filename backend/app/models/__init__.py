from app.models.academic_year import AcademicYear  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.period import Period  # noqa: F401
from app.models.section import Section  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.teacher import Teacher  # noqa: F401
from app.models.timetable_entry import TimetableEntry  # noqa: F401
