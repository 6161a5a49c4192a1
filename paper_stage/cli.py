import json
import click
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import Config
from .incremental import IncrementalGenerator, SegmentationStrategy
from .ingest import load_document
from .models.script import GenerationOptions
from .models.segment import SegmentEventType
from .outline import OutlineSceneGenerator
from .saves import SaveSystem
from .utils.logger import setup_logger
from .utils.progress import create_progress, progress_table

console = Console()

@click.group()
@click.option('--config', '-c', type=click.Path(dir_okay=False), default='config.yaml',
              help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool):
    """Paper Stage - play a paper as a visual novel while it is still being written."""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        ctx.obj['config'] = Config.from_yaml(config_path)
    else:
        ctx.obj['config'] = Config()

    log_level = "DEBUG" if verbose else ctx.obj['config'].log_level
    logger = setup_logger(log_level, ctx.obj['config'].log_file)
    ctx.obj['logger'] = logger

    if config_path.exists():
        logger.info(f"Config loaded from: {config_path}")

@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def segment(ctx: click.Context, file: str):
    """Show how a document is cut into segments."""
    config = ctx.obj['config']
    logger = ctx.obj['logger']

    try:
        document = load_document(Path(file))
        strategy = SegmentationStrategy(config.incremental)
        segments = strategy.segment_document(document)
    except Exception as e:
        logger.error(f"Segmentation failed: {e}")
        raise click.ClickException(str(e))

    table = Table(title=document.metadata.title or Path(file).name)
    table.add_column("Segment")
    table.add_column("Priority", justify="right")
    table.add_column("Sections", justify="right")
    table.add_column("Units", justify="right")
    table.add_column("Before playback")
    table.add_column("Est. seconds", justify="right")
    for seg in segments:
        table.add_row(
            seg.id,
            str(seg.priority),
            str(len(seg.content)),
            str(seg.estimated_units),
            "yes" if seg.must_generate_first else "no",
            str(strategy.estimate_generation_time(seg)),
        )
    console.print(table)
    console.print(
        f"Before-playback coverage: {strategy.coverage_percentage(segments):.0f}% "
        f"(threshold {config.incremental.min_start_percentage:g}%)"
    )

@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output script JSON')
@click.option('--language', '-l', type=click.Choice(['zh', 'jp', 'en']), default='zh', help='Primary language')
@click.option('--document-id', help='Save store id (defaults to one derived from the document)')
@click.option('--no-background', is_flag=True, help='Only generate the segments needed to start')
@click.pass_context
def generate(ctx: click.Context, file: str, output: str, language: str, document_id: str, no_background: bool):
    """Generate a playable script incrementally with the offline generator."""
    config = ctx.obj['config']
    logger = ctx.obj['logger']

    incremental = config.incremental
    if no_background:
        incremental = incremental.model_copy(update={"enable_background_generation": False})

    try:
        document = load_document(Path(file))
        generator = IncrementalGenerator(OutlineSceneGenerator(), incremental)
        options = GenerationOptions(primary_language=language)
        result = generator.generate_initial_content(document, options)
    except Exception as e:
        logger.error(f"Generation failed: {e}")
        raise click.ClickException(str(e))

    doc_id = document_id or document.document_id
    store = SaveSystem(config.saves)
    if store.get_instance(doc_id) is None:
        store.create_instance(doc_id, document.metadata.title or Path(file).stem)
    unfollow = store.follow_generation(doc_id, generator)

    console.print(progress_table(result.initial_progress, language))
    waiting = generator.get_waiting_dialogue("generating")
    if waiting and result.background_tasks and incremental.enable_background_generation:
        console.print(f"[italic]{waiting.character_id}: {waiting.content.get(language)}[/italic]")

    background_ids = {task.segment_id for task in result.background_tasks}
    with create_progress() as bar:
        task_id = bar.add_task("Background segments", total=len(background_ids) or None)

        def on_event(event):
            if event.segment_id in background_ids and event.type in (
                SegmentEventType.COMPLETED, SegmentEventType.FAILED
            ):
                bar.advance(task_id)

        unsubscribe = generator.subscribe(on_event)
        result.game_ready_callback()
        generator.wait_until_idle()
        unsubscribe()
    unfollow()

    final = generator.calculate_progress()
    console.print(progress_table(final, language))

    scenes = []
    for seg in result.segments:
        scenes.extend(generator.get_segment_scenes(seg.id) or [])
    script = generator.build_script(scenes, document, options, result.segments)

    output_path = Path(output) if output else Path(file).with_suffix(".script.json")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(script.to_dict(), f, ensure_ascii=False, indent=2)

    logger.success(
        f"Wrote {len(script.scenes)} scenes ({script.dialogue_count} lines) to {output_path} "
        f"[save id: {doc_id}]"
    )

@cli.group()
def saves():
    """Inspect the save store."""
    pass

@saves.command('list')
@click.pass_context
def list_saves(ctx: click.Context):
    """List game instances, most recently played first."""
    store = SaveSystem(ctx.obj['config'].saves)

    table = Table(title="Game instances")
    table.add_column("Document")
    table.add_column("Title")
    table.add_column("Last played")
    table.add_column("Progress", justify="right")
    table.add_column("Segments", justify="right")
    for instance in store.list_instances():
        progress = instance.game_progress
        table.add_row(
            instance.document_id,
            instance.document_title.get(instance.settings.language),
            instance.last_played_at.strftime("%Y-%m-%d %H:%M"),
            f"{progress.total_progress}%",
            f"{len(progress.completed_segments)}/{len(progress.available_segments)}",
        )
    console.print(table)

    stats = store.stats()
    console.print(f"{stats['total_instances']} instances, {stats['total_saves']} saves, {stats['storage_used']} bytes")

@saves.command('show')
@click.argument('document_id')
@click.pass_context
def show_saves(ctx: click.Context, document_id: str):
    """Show slots and progress for one document."""
    store = SaveSystem(ctx.obj['config'].saves)
    instance = store.get_instance(document_id)
    if instance is None:
        raise click.ClickException(f"Game instance not found: {document_id}")

    language = instance.settings.language
    progress = instance.game_progress
    console.print(f"[bold]{instance.document_title.get(language)}[/bold] ({instance.document_id})")
    console.print(
        f"Segment {progress.current_segment} / scene {progress.current_scene} / line {progress.current_dialogue_index}, "
        f"{progress.total_progress}% complete"
    )
    console.print(f"Available: {', '.join(progress.available_segments) or '-'}")
    if instance.generation_progress:
        console.print(f"Generation: {instance.generation_progress.get('overall_progress', 0)}%")

    table = Table()
    table.add_column("Slot")
    table.add_column("Saved at")
    table.add_column("Label")
    table.add_column("Description")
    named = [("quick", instance.quick_save), ("auto", instance.auto_save)]
    for slot, data in list(enumerate(instance.save_slots)) + named:
        if data is None:
            table.add_row(str(slot), "-", "", "")
            continue
        table.add_row(
            str(slot),
            data.saved_at.strftime("%Y-%m-%d %H:%M:%S"),
            data.label or "",
            data.description.get(language) if data.description else "",
        )
    console.print(table)

@saves.command('delete')
@click.argument('document_id')
@click.confirmation_option(prompt='Delete this game instance and all of its saves?')
@click.pass_context
def delete_saves(ctx: click.Context, document_id: str):
    """Delete a game instance."""
    logger = ctx.obj['logger']
    store = SaveSystem(ctx.obj['config'].saves)
    try:
        store.delete_instance(document_id)
    except Exception as e:
        logger.error(f"Delete failed: {e}")
        raise click.ClickException(str(e))
    logger.success(f"Deleted {document_id}")

def main():
    cli()

if __name__ == '__main__':
    main()
