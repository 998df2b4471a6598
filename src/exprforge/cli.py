"""
Command-line interface for exprforge.

Provides commands for:
- Sampling random expressions and evaluating them at a point
- Evaluating an expression over a grid and saving the RGB array
"""

import logging
import sys
from pathlib import Path

import click
import numpy as np

from exprforge import __version__

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("exprforge")


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def main(verbose: bool) -> None:
    """exprforge - Random formula synthesis over (x, y)."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@main.command()
@click.option("--depth", "-d", default=6, type=click.IntRange(min=0), help="Maximum tree depth")
@click.option("--count", "-n", default=3, type=click.IntRange(min=1), help="Number of expressions")
@click.option("--seed", "-s", default=None, type=int, help="Random seed")
@click.option("-x", "x", default=0.6, type=float, help="x coordinate to evaluate at")
@click.option("-y", "y", default=0.2, type=float, help="y coordinate to evaluate at")
def sample(depth: int, count: int, seed: int | None, x: float, y: float) -> None:
    """Generate expressions and evaluate them at (x, y)."""
    from exprforge.grammar.generator import GeneratorConfig, TreeGenerator

    generator = TreeGenerator(GeneratorConfig(max_depth=depth, seed=seed))

    for i, expression in enumerate(generator.generate_batch(count), start=1):
        values = expression.evaluate(x, y)
        click.echo(f"Expression {i}: {expression.formula}")
        click.echo(f"Evaluates to: ({', '.join(f'{v:.6g}' for v in values)})")


@main.command()
@click.option("--depth", "-d", default=6, type=click.IntRange(min=0), help="Maximum tree depth")
@click.option("--seed", "-s", default=None, type=int, help="Random seed")
@click.option("--width", "-w", default=256, type=click.IntRange(min=1), help="Grid width")
@click.option("--height", "-h", default=256, type=click.IntRange(min=1), help="Grid height")
@click.option("--extent", "-e", default=1.0, type=float, help="Coordinates span [-extent, extent]")
@click.option("--output", "-o", default=None, help="Output .npy file for the RGB array")
def grid(
    depth: int,
    seed: int | None,
    width: int,
    height: int,
    extent: float,
    output: str | None,
) -> None:
    """Generate one expression and evaluate it over a grid."""
    from exprforge.grammar.generator import GeneratorConfig, TreeGenerator
    from exprforge.grammar.compiler import evaluate_grid, to_rgb

    generator = TreeGenerator(GeneratorConfig(max_depth=depth, seed=seed))
    expression = generator.generate_expression()
    click.echo(f"Expression: {expression.formula}")

    try:
        values = evaluate_grid(expression, width, height, extent)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for channel in range(values.shape[-1]):
        plane = values[..., channel]
        click.echo(
            f"Channel {channel}: min={np.nanmin(plane):.4g} max={np.nanmax(plane):.4g}"
            if not np.isnan(plane).all()
            else f"Channel {channel}: all NaN"
        )

    if output:
        output_path = Path(output)
        if output_path.suffix != ".npy":
            output_path = output_path.with_name(output_path.name + ".npy")
        np.save(output_path, to_rgb(values))
        click.echo(f"\nRGB array saved to {output_path}")


if __name__ == "__main__":
    main()
