from .task import (
    TaskCreate, TaskUpdate, TaskOut, TaskStatusUpdate, TaskSummary, TaskBoard,
    SubtaskIn, SubtaskOut, TaskTimeEntryOut, AttachmentCreate, AttachmentOut,
    DependencyCreate, TaskDependencyView,
)
from .time_log import TimerStart, TimeLogOut
from .notification import NotificationOut
from .assistant import BreakdownRequest
