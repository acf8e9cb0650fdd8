"""A multi-stage, multi-threaded packet pipeline connected by queues."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from typing import Optional

from .logger import get_logger
from .packet import DataPacket
from .stages import PipelineStage


@dataclass
class _StageContext:
    stage: PipelineStage
    num_threads: int
    input_queue: "queue.Queue[Optional[DataPacket]]" = field(default_factory=queue.Queue)
    output_queue: Optional["queue.Queue[Optional[DataPacket]]"] = None
    workers: list = field(default_factory=list)


class Pipeline:
    """Runs packets through a chain of stages, each served by its own worker threads.

    Packets pushed into the pipeline enter the first stage. Whatever a stage
    returns is handed to the next one; a stage that returns None drops the packet.
    """

    def __init__(self) -> None:
        self._stages: list[_StageContext] = []
        self._running = threading.Event()

    @property
    def stages(self) -> tuple[PipelineStage, ...]:
        """The stages in the order they were added."""
        return tuple(ctx.stage for ctx in self._stages)

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def add_stage(self, stage: PipelineStage, num_threads: int = 1) -> None:
        """Append ``stage`` to the chain, to be served by ``num_threads`` workers."""
        if num_threads < 0:
            raise ValueError(f"num_threads must not be negative, got {num_threads}")
        self._stages.append(_StageContext(stage=stage, num_threads=num_threads))

    def start(self) -> None:
        """Link the stages, initialize each one and start its workers."""
        if not self._stages or self._running.is_set():
            return

        for current, following in zip(self._stages, self._stages[1:]):
            current.output_queue = following.input_queue

        self._running.set()

        for index, ctx in enumerate(self._stages):
            ctx.stage.initialize()
            for number in range(ctx.num_threads):
                worker = threading.Thread(
                    target=self._work,
                    args=(ctx,),
                    name=f"{type(ctx.stage).__name__}-{index}-{number}",
                    daemon=True,
                )
                ctx.workers.append(worker)
                worker.start()

    def stop(self) -> None:
        """Wake and join every worker, then shut each stage down."""
        self._running.clear()
        for ctx in self._stages:
            for _ in range(ctx.num_threads):
                ctx.input_queue.put(None)
            for worker in ctx.workers:
                worker.join()
            ctx.workers.clear()
            ctx.stage.shutdown()

    def push(self, packet: DataPacket) -> None:
        """Hand a packet to the first stage; does nothing if there are no stages."""
        if self._stages:
            self._stages[0].input_queue.put(packet)

    def __enter__(self) -> "Pipeline":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _work(self, ctx: _StageContext) -> None:
        log = get_logger()
        while self._running.is_set():
            packet = ctx.input_queue.get()
            if packet is None:
                continue
            try:
                result = ctx.stage.process(packet)
            except Exception:
                log.exception("[Pipeline] %s failed to process packet", type(ctx.stage).__name__)
                continue
            if result is not None and ctx.output_queue is not None:
                ctx.output_queue.put(result)