from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn, TimeRemainingColumn
from rich.table import Table

from ..models.segment import GenerationProgress, SegmentStatus

STATUS_STYLES = {
    SegmentStatus.PENDING: "dim",
    SegmentStatus.GENERATING: "yellow",
    SegmentStatus.COMPLETED: "green",
    SegmentStatus.FAILED: "red",
}

def create_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
    )

def progress_table(progress: GenerationProgress, language: str = "en") -> Table:
    table = Table(
        title=f"Generation {progress.overall_progress}% "
        f"({progress.completed_segments}/{progress.total_segments} segments)",
    )
    table.add_column("Segment")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Message")

    for entry in progress.segments:
        style = STATUS_STYLES.get(entry.status, "")
        table.add_row(
            entry.segment_id,
            f"[{style}]{entry.status.value}[/{style}]" if style else entry.status.value,
            f"{entry.progress}%",
            entry.message.get(language) + (f" ({entry.error})" if entry.error else ""),
        )

    table.caption = (
        f"can start: {'yes' if progress.can_start_game else 'no'} | "
        f"~{progress.estimated_time_remaining}s remaining"
    )
    return table
