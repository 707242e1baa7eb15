"""Monthly result generation, processing and reporting service."""

import calendar
import logging
import time
from datetime import date
from io import BytesIO
from itertools import groupby

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from sqlalchemy import delete, func, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from coachdesk.core.context import AppContext
from coachdesk.core.exceptions import AppException, DataSourceError, NotFoundError
from coachdesk.core.locks import cohort_key, month_key
from coachdesk.models.batch import Batch, BatchStatus
from coachdesk.models.monthly_result import MonthlyResult, TopPerformer
from coachdesk.schemas.monthly_result import (
    AvailableMonth,
    CohortResultResponse,
    MonthlyResultResponse,
    MonthlyResultStats,
    ProcessingStats,
    TopPerformerResponse,
)
from coachdesk.services.aggregator import COHORT_EMPTY_ROSTER, CohortOutcome, MonthlyResultAggregator
from coachdesk.services.calendar import validate_period
from coachdesk.services.result_store import SqlResultStore

logger = logging.getLogger(__name__)


class MonthlyResultService:
    """Monthly result management service."""

    def __init__(self, db: Session, context: AppContext):
        self.db = db
        self.context = context
        self.settings = context.settings

    def _aggregator(self) -> MonthlyResultAggregator:
        return MonthlyResultAggregator(
            SqlResultStore(self.db, self.settings),
            rank_policy=self.settings.RANK_TIE_POLICY,
            bonus_policy=self.settings.BONUS_POLICY,
            locale=self.settings.GRADE_DESCRIPTION_LOCALE,
        )

    def _get_batch(self, batch_id: int) -> Batch:
        batch = self.db.get(Batch, batch_id)
        if not batch:
            raise NotFoundError("Batch", str(batch_id))
        return batch

    def _outcome_response(self, outcome: CohortOutcome) -> CohortResultResponse:
        return CohortResultResponse(
            batch_id=outcome.batch_id,
            year=outcome.year,
            month=outcome.month,
            status=outcome.status,
            working_days=outcome.working_days,
            total_students=outcome.total_students,
            results=[MonthlyResultResponse.model_validate(r) for r in outcome.results],
        )

    # ==========================================
    # Generation
    # ==========================================

    def generate_for_batch(self, batch_id: int, year: int, month: int) -> CohortResultResponse:
        """Recompute and replace the monthly results of one batch."""
        validate_period(year, month)
        self._get_batch(batch_id)

        # Top performers and the default calendar are shared by the whole month
        with self.context.locks.hold(month_key(year, month)), \
                self.context.locks.hold(cohort_key(batch_id, year, month)):
            try:
                outcome = self._aggregator().run(batch_id, year, month)
                self._refresh_top_performers(year, month)
                # Commit before releasing the locks
                self.db.commit()
            except OperationalError as e:
                self.db.rollback()
                logger.exception(f"Result store unavailable for batch {batch_id}, {month}/{year}")
                raise DataSourceError("Result store unavailable") from e

        logger.info(
            f"Generated {outcome.total_students} monthly results for batch {batch_id}, {month}/{year}"
        )
        return self._outcome_response(outcome)

    def process_month(self, year: int, month: int) -> ProcessingStats:
        """Generate results for every active batch of a month.

        Each batch runs in its own savepoint; a failing batch is logged and
        reported in the stats while the remaining batches are processed.
        """
        validate_period(year, month)
        started = time.perf_counter()
        stats = ProcessingStats(year=year, month=month)

        with self.context.locks.hold(month_key(year, month)):
            batches = self.db.execute(
                select(Batch).where(Batch.status == BatchStatus.ACTIVE).order_by(Batch.id)
            ).scalars().all()
            stats.total_batches = len(batches)
            logger.info(f"Processing {len(batches)} active batches for {month}/{year}")

            aggregator = self._aggregator()
            for batch in batches:
                try:
                    with self.context.locks.hold(cohort_key(batch.id, year, month)):
                        with self.db.begin_nested():
                            outcome = aggregator.run(batch.id, year, month)
                except (AppException, SQLAlchemyError):
                    logger.exception(f"Failed to process batch {batch.name} ({batch.id})")
                    stats.failed_batches += 1
                    stats.failed_batch_ids.append(batch.id)
                    continue

                if outcome.status == COHORT_EMPTY_ROSTER:
                    stats.empty_batches += 1
                else:
                    stats.processed_batches += 1
                    stats.total_students += outcome.total_students
                logger.info(f"Batch {batch.name}: {outcome.total_students} students processed")

            self._refresh_top_performers(year, month)
            self.db.commit()

        stats.processing_time_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(f"Monthly result processing completed: {stats.model_dump()}")
        return stats

    def _refresh_top_performers(self, year: int, month: int) -> None:
        """Rebuild the top performers cache of a month per class level."""
        self.db.execute(
            delete(TopPerformer).where(TopPerformer.year == year, TopPerformer.month == month)
        )
        results = self.db.execute(
            select(MonthlyResult)
            .where(MonthlyResult.year == year, MonthlyResult.month == month)
            .order_by(
                MonthlyResult.class_level,
                MonthlyResult.final_percent.desc(),
                MonthlyResult.student_id,
            )
        ).scalars().all()

        limit = self.settings.TOP_PERFORMERS_LIMIT
        for class_level, group in groupby(results, key=lambda r: r.class_level):
            for rank, result in enumerate(list(group)[:limit], start=1):
                self.db.add(TopPerformer(
                    student_id=result.student_id,
                    year=year,
                    month=month,
                    class_level=class_level,
                    rank=rank,
                    student_name=result.student_name or "Unknown",
                    final_percent=result.final_percent,
                ))
        self.db.flush()

    # ==========================================
    # Queries
    # ==========================================

    def list_results(self, batch_id: int, year: int, month: int) -> list[MonthlyResultResponse]:
        """Get the stored results of a cohort ordered by rank."""
        validate_period(year, month)
        self._get_batch(batch_id)
        results = self.db.execute(
            select(MonthlyResult)
            .where(
                MonthlyResult.batch_id == batch_id,
                MonthlyResult.year == year,
                MonthlyResult.month == month,
            )
            .order_by(MonthlyResult.class_rank, MonthlyResult.student_id)
        ).scalars().all()
        return [MonthlyResultResponse.model_validate(r) for r in results]

    def is_month_processed(self, year: int, month: int) -> bool:
        """Check whether any results are stored for a month."""
        validate_period(year, month)
        count = self.db.execute(
            select(func.count(MonthlyResult.id)).where(
                MonthlyResult.year == year,
                MonthlyResult.month == month,
            )
        ).scalar() or 0
        return count > 0

    def get_processing_stats(self, year: int, month: int) -> MonthlyResultStats | None:
        """Get summary statistics of a month's stored results."""
        validate_period(year, month)
        period = (MonthlyResult.year == year, MonthlyResult.month == month)
        row = self.db.execute(
            select(
                func.count(MonthlyResult.id).label("total"),
                func.count(func.distinct(MonthlyResult.batch_id)).label("batches"),
                func.avg(MonthlyResult.final_percent).label("avg"),
                func.max(MonthlyResult.final_percent).label("highest"),
                func.min(MonthlyResult.final_percent).label("lowest"),
            ).where(*period)
        ).one()
        if not row.total:
            return None

        distribution = self.db.execute(
            select(MonthlyResult.letter_grade, func.count(MonthlyResult.id))
            .where(*period)
            .group_by(MonthlyResult.letter_grade)
        ).all()

        return MonthlyResultStats(
            year=year,
            month=month,
            total_results=row.total,
            total_batches=row.batches,
            average_final_percent=round(float(row.avg), 2),
            highest_final_percent=float(row.highest),
            lowest_final_percent=float(row.lowest),
            grade_distribution={letter: count for letter, count in distribution},
        )

    def get_top_performers(
        self,
        year: int,
        month: int,
        class_level: str | None = None,
    ) -> list[TopPerformerResponse]:
        """Get the cached top performers of a month."""
        validate_period(year, month)
        query = select(TopPerformer).where(TopPerformer.year == year, TopPerformer.month == month)
        if class_level:
            query = query.where(TopPerformer.class_level == class_level)
        query = query.order_by(TopPerformer.class_level, TopPerformer.rank)
        return [TopPerformerResponse.model_validate(t) for t in self.db.execute(query).scalars().all()]

    def available_months(self, today: date, count: int = 6) -> list[AvailableMonth]:
        """List recent months, newest first; only past months can be processed."""
        months = []
        year, month = today.year, today.month
        for _ in range(count):
            months.append(AvailableMonth(
                year=year,
                month=month,
                month_name=calendar.month_name[month],
                is_processed=self.is_month_processed(year, month),
                can_process=(year, month) < (today.year, today.month),
            ))
            year, month = (year, month - 1) if month > 1 else (year - 1, 12)
        return months

    # ==========================================
    # Excel Export
    # ==========================================

    def export_results(self, batch_id: int, year: int, month: int) -> bytes:
        """Build an Excel workbook of a cohort's monthly results."""
        batch = self._get_batch(batch_id)
        results = self.list_results(batch_id, year, month)

        wb = Workbook()
        ws = wb.active
        ws.title = "Monthly Results"

        title_font = Font(bold=True, size=14)
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        center_align = Alignment(horizontal='center', vertical='center')

        headers = [
            "Rank",
            "Student Name",
            "Class",
            "Exam %",
            "Exams",
            "Present",
            "Excused",
            "Absent",
            "Working Days",
            "Attendance %",
            "Bonus %",
            "Final %",
            "GPA",
            "Grade",
            "Remarks",
        ]

        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(headers))
        title_cell = ws.cell(
            row=1,
            column=1,
            value=f"{batch.name} - {calendar.month_name[month]} {year} Results",
        )
        title_cell.font = title_font
        title_cell.alignment = center_align

        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=2, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin_border
            cell.alignment = center_align

        for row_idx, result in enumerate(results, start=3):
            values = [
                result.class_rank,
                result.student_name,
                result.class_level,
                result.exam_component_percent,
                result.total_exams,
                result.present_days,
                result.excused_days,
                result.absent_days,
                result.working_days,
                result.attendance_component_percent,
                result.bonus_percent,
                result.final_percent,
                result.gpa,
                result.letter_grade,
                result.grade_description,
            ]
            for col_idx, value in enumerate(values, start=1):
                ws.cell(row=row_idx, column=col_idx, value=value).border = thin_border

        ws.column_dimensions['B'].width = 25
        ws.column_dimensions['O'].width = 20

        output = BytesIO()
        wb.save(output)
        output.seek(0)
        return output.getvalue()
