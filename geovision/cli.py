"""Click CLI commands for GeoVision."""

import asyncio
import logging
import pathlib

import click

from .constants import DATA_SOURCE, OUTPUT_DIR
from .models import ColorMode, PresentationStep
from .presentation import SitePresentation

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """GeoVision CLI for walking through a survey-site presentation."""
    pass


@cli.command()
@click.argument('source', default=DATA_SOURCE)
def steps(source: str):
    """List the presentation steps available for SOURCE."""
    asyncio.run(async_steps(source))


@cli.command()
@click.argument('source', default=DATA_SOURCE)
@click.option('--output-dir', '-o', default=str(OUTPUT_DIR), help='Directory for GLB files')
def export(source: str, output_dir: str):
    """Export one GLB per presentation state.

    Drillhole steps are exported once per colour mode.
    """
    asyncio.run(async_export(source, pathlib.Path(output_dir)))


@cli.command()
@click.argument('source', default=DATA_SOURCE)
@click.option('--mode', '-m', type=click.Choice([m.value for m in ColorMode]),
              default=ColorMode.lithology.value, help='Colour mode')
def legend(source: str, mode: str):
    """Print the drillhole legend for a colour mode."""
    asyncio.run(async_legend(source, ColorMode(mode)))


async def _open(source: str) -> SitePresentation:
    presentation = SitePresentation(source)
    await presentation.open()
    await presentation.wait_until_loaded()
    return presentation


def _echo_legend(entries):
    for entry in entries:
        click.echo(f"    {entry['color']}  {entry['label']}")


async def async_steps(source: str):
    """Async helper for listing steps."""
    presentation = SitePresentation(source)
    try:
        step_list = await presentation.catalog.build_steps()
    except Exception as e:
        logger.error(f"Error probing {source}: {e}")
        raise click.ClickException(str(e))
    finally:
        presentation.close()
    for index, step in enumerate(step_list):
        click.echo(f"{index + 1}. {step.label} ({step.value})")


async def async_export(source: str, output_dir: pathlib.Path):
    """Async helper for exporting every presentation state."""
    presentation = await _open(source)
    engine = presentation.engine
    written = 0
    try:
        for index, step in enumerate(engine.steps):
            modes = list(ColorMode) if step.is_drillhole else [None]
            for mode in modes:
                engine.go_to(index)
                suffix = ""
                if mode is not None:
                    engine.set_color_mode(mode)
                    suffix = f"_{mode.value}"
                if not engine.visible_names:
                    click.echo(f"[{index + 1}] {step.label}{suffix}: empty "
                               f"({engine.layer_status(step.layer)})")
                    continue
                path = output_dir / f"{index + 1:02d}_{step.value}{suffix}.glb"
                presentation.sink.export(path)
                written += 1
                click.echo(f"[{index + 1}] {step.label}{suffix}: "
                           f"{len(engine.visible_names)} nodes → {path}")
                _echo_legend(engine.legend())
    except Exception as e:
        logger.error(f"Error exporting presentation: {e}")
        raise click.ClickException(str(e))
    finally:
        presentation.close()
    click.echo(f"\nWrote {written} GLB files to {output_dir}")


async def async_legend(source: str, mode: ColorMode):
    """Async helper for printing a drillhole legend."""
    presentation = await _open(source)
    engine = presentation.engine
    try:
        step = (PresentationStep.assayData if mode is ColorMode.assay
                else PresentationStep.lithologyData)
        if step not in engine.steps:
            raise click.ClickException(f"No drillhole data at {source}")
        engine.go_to(engine.steps.index(step))
        engine.set_color_mode(mode)
        entries = engine.legend()
        if not entries:
            raise click.ClickException(
                f"Drillhole data unavailable ({engine.layer_status(engine.step.layer)})")
        click.echo(f"Legend ({mode.value}):")
        _echo_legend(entries)
    finally:
        presentation.close()
