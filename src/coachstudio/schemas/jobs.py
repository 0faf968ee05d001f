from datetime import datetime

from pydantic import BaseModel

from coachstudio.scheduling.materializer import MaterializationReport


class GenerationGapRead(BaseModel):
    recurring_booking_id: int
    start_time: datetime
    end_time: datetime
    reason: str


class MaterializationReportRead(BaseModel):
    weeks_generated: int
    sessions_created: int
    gaps: list[GenerationGapRead]
    errors: list[str]

    @classmethod
    def from_report(cls, report: MaterializationReport) -> "MaterializationReportRead":
        return cls(
            weeks_generated=report.weeks_generated,
            sessions_created=report.sessions_created,
            gaps=[
                GenerationGapRead(
                    recurring_booking_id=gap.recurring_booking_id,
                    start_time=gap.start,
                    end_time=gap.end,
                    reason=gap.reason,
                )
                for gap in report.gaps
            ],
            errors=report.errors,
        )


class AdvanceResult(BaseModel):
    sessions_completed: int


class StatusResponse(BaseModel):
    status: str
