# -*- coding: utf-8 -*-
"""
Reminder module

Session-scoped hydration reminders: the timer lives as long as the client
connection and is not persisted.
"""

from .scheduler import REMINDER_TITLE, ReminderScheduler, reminder_body, reminder_delay
from .session import ReminderSession
from .websocket import ReminderManager, reminder_manager, reminders_endpoint

__all__ = [
    'REMINDER_TITLE',
    'ReminderScheduler',
    'reminder_body',
    'reminder_delay',
    'ReminderSession',
    'ReminderManager',
    'reminder_manager',
    'reminders_endpoint',
]
