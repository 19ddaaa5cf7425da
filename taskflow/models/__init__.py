from .task import Task, Subtask, TaskTimeEntry, TaskAttachment, TaskStatus, TaskPriority
from .time_log import TimeLog, TimeLogType
