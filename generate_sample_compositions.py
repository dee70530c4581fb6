#!/usr/bin/env python3
"""
Render sample compositions to PNG files.

Each seed produces one full composition plus a variant with the
structural layers hidden, which must keep every other layer identical.

Usage:
    python generate_sample_compositions.py [seed ...]

If no seed is provided, seeds 42, 7 and 1234 are rendered.
"""

import logging
import sys
from pathlib import Path

import structlog

from tangle_map.config import CompositionParams, settings
from tangle_map.core.clusters import ClusterField
from tangle_map.core.pipeline import CompositionPipeline
from tangle_map.core.random_stream import RandomStream
from tangle_map.render.matplotlib_canvas import MatplotlibCanvas

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

OUTPUT_DIR = Path("sample_compositions")
HIDDEN_IN_VARIANT = ("grid", "infrastructure", "plotAreas")


def render_composition(seed, params, hidden=(), output_path=None):
    """Render one composition and write it as PNG."""
    random = RandomStream(seed)
    pipeline = CompositionPipeline(random, ClusterField(params.width, params.height, params.padding))
    pipeline.set_layer_states({name: False for name in hidden})

    canvas = MatplotlibCanvas(params.width, params.height)
    try:
        pipeline.render_all(canvas, params, regenerate=True)
        output_path.write_bytes(canvas.to_png())
    finally:
        canvas.close()

    stats = pipeline.render_stats()
    print(f"  {output_path.name}: {stats['enabled_layers']}/{stats['total_layers']} layers, "
          f"{random.call_count} draws")
    return pipeline


def main():
    seeds = [int(arg) for arg in sys.argv[1:]] or [42, 7, 1234]
    params = CompositionParams(
        width=settings.default_width,
        height=settings.default_height,
        padding=settings.default_padding,
        cluster_count=settings.default_cluster_count,
    )
    OUTPUT_DIR.mkdir(exist_ok=True)

    for seed in seeds:
        print(f"\nSeed {seed} ({params.width:.0f}x{params.height:.0f}, {params.cluster_count} clusters)")
        full = render_composition(seed, params, output_path=OUTPUT_DIR / f"composition_{seed}.png")
        variant = render_composition(
            seed, params, hidden=HIDDEN_IN_VARIANT,
            output_path=OUTPUT_DIR / f"composition_{seed}_minimal.png",
        )

        full_data = {name: entry["data"] for name, entry in full.export_layer_data().items()}
        variant_data = {name: entry["data"] for name, entry in variant.export_layer_data().items()}
        if full_data != variant_data:
            print("  WARNING: hiding layers changed the generated data")

    print(f"\nDone. Images written to {OUTPUT_DIR.resolve()}")


if __name__ == "__main__":
    main()
