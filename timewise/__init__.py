"""Semester timetable engine: weekly greedy planning over a fixed slot grid."""
