"""
Attendance Summary
Days used / remaining for a ticket, derived only from its entitlement rows.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DayStatus:
    date: str
    status: str
    used_at: str = None

    def to_dict(self):
        return {"date": self.date, "status": self.status, "used_at": self.used_at}


@dataclass(frozen=True)
class AttendanceSummary:
    total_days: int
    used_days: int
    remaining_days: int
    days: list = field(default_factory=list)

    def to_dict(self):
        return {
            "total_days": self.total_days,
            "used_days": self.used_days,
            "remaining_days": self.remaining_days,
            "days": [day.to_dict() for day in self.days],
        }


def build_attendance_summary(entitlements):
    ordered = sorted(entitlements, key=lambda e: e.date)
    days = [
        DayStatus(
            date=e.date.isoformat(),
            status=e.status,
            used_at=e.used_at.isoformat() if e.used_at else None,
        )
        for e in ordered
    ]
    used = sum(1 for day in days if day.status == "USED")
    return AttendanceSummary(
        total_days=len(days),
        used_days=used,
        remaining_days=len(days) - used,
        days=days,
    )
