"""Visit entry - builds and validates visit drafts before submission."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional

from ..core.config import MAX_PROCEDURES_PER_VISIT, MAX_VISIT_AGE_YEARS
from ..core.errors import ValidationError
from ..data.models import ProcedureCode, ProcedureDraft, Visit, VisitDraft

logger = logging.getLogger(__name__)


@dataclass
class ProcedureEntry:
    code: str
    description: str
    status_code: str
    work_rvu: float
    quantity: int = 1


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 on a non-leap target year
        return day.replace(year=day.year - years, day=28)


class VisitEntryForm:
    """Form state for creating a new visit or editing an existing one."""

    def __init__(self, visit_date: Optional[date] = None):
        self.visit_date: date = visit_date or date.today()
        self.visit_time: Optional[time] = None
        self.notes = ""
        self.is_no_show = False
        self.procedures: List[ProcedureEntry] = []
        self.editing_visit_id: Optional[str] = None

    @property
    def is_edit_mode(self) -> bool:
        return self.editing_visit_id is not None

    @classmethod
    def from_visit(cls, visit: Visit) -> "VisitEntryForm":
        """Pre-fill the form from an existing visit for editing."""
        form = cls()
        form.editing_visit_id = visit.id
        try:
            form.visit_date = datetime.strptime(visit.date[:10], "%Y-%m-%d").date()
        except ValueError:
            logger.warning(f"Visit {visit.id} has unparseable date '{visit.date}', using today")
        if visit.time:
            try:
                form.visit_time = datetime.strptime(visit.time, "%H:%M:%S").time().replace(second=0)
            except ValueError:
                logger.warning(f"Visit {visit.id} has unparseable time '{visit.time}'")
        form.notes = visit.notes or ""
        form.is_no_show = visit.is_no_show
        form.procedures = [
            ProcedureEntry(
                code=p.code,
                description=p.description,
                status_code=p.status_code,
                work_rvu=p.work_rvu,
                quantity=p.quantity,
            )
            for p in visit.procedures
        ]
        return form

    # =========================================================================
    # Procedures
    # =========================================================================

    def add_procedure(self, code: ProcedureCode):
        self.procedures.append(ProcedureEntry(
            code=code.code,
            description=code.description,
            status_code=code.status_code,
            work_rvu=code.work_rvu,
        ))

    def remove_procedure(self, index: int):
        if 0 <= index < len(self.procedures):
            del self.procedures[index]

    def update_quantity(self, index: int, quantity: int):
        if 0 <= index < len(self.procedures):
            self.procedures[index].quantity = max(1, quantity)

    @property
    def total_work_rvu(self) -> float:
        return sum(p.work_rvu * p.quantity for p in self.procedures)

    # =========================================================================
    # Validation and submission
    # =========================================================================

    def validate(self, today: Optional[date] = None):
        """Raise ValidationError if the form cannot be submitted."""
        today = today or date.today()
        if not self.is_no_show and not self.procedures:
            raise ValidationError("Please add at least one procedure or mark as no-show")
        if len(self.procedures) > MAX_PROCEDURES_PER_VISIT:
            raise ValidationError(f"A visit can have at most {MAX_PROCEDURES_PER_VISIT} procedures")
        if self.visit_date > today:
            raise ValidationError("Visit date cannot be in the future")
        if self.visit_date < _years_before(today, MAX_VISIT_AGE_YEARS):
            raise ValidationError("Visit date is too far in the past")

    def build_draft(self, today: Optional[date] = None) -> VisitDraft:
        self.validate(today)
        return VisitDraft(
            date=self.visit_date.isoformat(),
            time=self.visit_time.strftime("%H:%M:%S") if self.visit_time else None,
            notes=self.notes if self.notes.strip() else None,
            is_no_show=self.is_no_show,
            procedures=[
                ProcedureDraft(
                    code=p.code,
                    description=p.description,
                    status_code=p.status_code,
                    work_rvu=p.work_rvu,
                    quantity=p.quantity,
                )
                for p in self.procedures
            ],
        )

    def submit(self, repository, today: Optional[date] = None) -> Visit:
        """Create or update the visit through a VisitRepository.

        A successful create resets the form; edits keep it populated.
        """
        draft = self.build_draft(today)
        if self.is_edit_mode:
            visit = repository.update_visit(self.editing_visit_id, draft)
        else:
            visit = repository.create_visit(draft)
            self.reset()
        return visit

    def reset(self):
        self.visit_date = date.today()
        self.visit_time = None
        self.notes = ""
        self.is_no_show = False
        self.procedures = []


__all__ = ['ProcedureEntry', 'VisitEntryForm']
