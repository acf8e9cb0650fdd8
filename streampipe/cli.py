"""Command that runs the event pipeline over a set of followed input files."""

from __future__ import annotations

import argparse
import signal
import time
from typing import Optional, Sequence

from .logger import get_logger, init_logger
from .pipeline import Pipeline
from .sources import FileSource
from .stages import EnricherStage, FilterStage, FlinkStage, JsonParserStage, TransformStage

DEFAULT_INPUTS = ("input1.txt", "input2.txt", "input.txt")
STAGE_THREADS = 3


def build_pipeline() -> Pipeline:
    """The standard chain: parse, filter, enrich, transform, write; three workers each."""
    pipeline = Pipeline()
    pipeline.add_stage(JsonParserStage(), STAGE_THREADS)
    pipeline.add_stage(FilterStage(), STAGE_THREADS)
    pipeline.add_stage(EnricherStage(), STAGE_THREADS)
    pipeline.add_stage(TransformStage(), STAGE_THREADS)
    pipeline.add_stage(FlinkStage(), STAGE_THREADS)
    return pipeline


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run until interrupted, then stop the sources and the pipeline."""
    parser = argparse.ArgumentParser(
        prog="streampipe", description="Follow input files and run their events through the pipeline."
    )
    parser.add_argument("files", nargs="*", default=list(DEFAULT_INPUTS), help="files to follow")
    parser.add_argument("--log-file", default="pipeline.log", help="log file to write")
    args = parser.parse_args(argv)

    init_logger(args.log_file)
    get_logger().info("Application started")

    pipeline = build_pipeline()
    pipeline.start()
    sources: list[FileSource] = []
    try:
        for path in args.files:
            source = FileSource(path)
            source.start_reading(pipeline.push)
            sources.append(source)

        print("[Main] Running. Press Ctrl+C to exit...", flush=True)
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print(f"\n[Main] Caught signal {int(signal.SIGINT)}, shutting down...", flush=True)
    finally:
        for source in sources:
            source.stop_reading()
        pipeline.stop()
    return int(signal.SIGINT)


if __name__ == "__main__":
    raise SystemExit(main())