from enum import Enum


class SessionPhase(Enum):
    IDLE = "idle"
    WORK = "work"
    WORK_FINISHED = "workFinished"
    BREAK = "break"
    BREAK_FINISHED = "breakFinished"
    # Written by older front ends; never entered by the session machine.
    CONFIG_MEETINGS = "configMeetings"
    EXIT = "exit"


class SessionEvent(Enum):
    WORK = "WORK"
    BREAK = "BREAK"
    FINISHED = "FINISHED"
    STOP = "STOP"
    EXIT = "EXIT"


class MeetingPhase(Enum):
    IDLE = "idle"
    CONFIG_MEETINGS = "configMeetings"
    MEETING = "meeting"


class MeetingEvent(Enum):
    CONFIG_MEETINGS = "CONFIGMEETINGS"
    MEETING = "MEETING"
    STOP = "STOP"
