# streampipe

streampipe is a small stream processing pipeline that uses threads. Input
sources produce packets of JSON text. Each packet passes through a chain of
stages. Every stage has its own input queue and its own pool of worker threads.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install .[test]
```

## Running

```
streampipe [FILE ...] [--log-file PATH]
```

The command sets up logging. Messages at INFO and above go to standard output.
Messages at DEBUG and above go to the log file. The log file is `pipeline.log`
by default and is truncated at startup.

The command then builds the default pipeline, with three worker threads per
stage. It follows each named file and reads new events as they are appended.
If no files are given, it follows `input1.txt`, `input2.txt` and `input.txt`.

The command runs until you press Ctrl+C. It then stops every source and the
pipeline, and exits with status 2.

## Event format

The input files hold JSON documents one after another. A document may span
several lines. Carriage returns are removed and blank lines are skipped. A
line is read only once it ends in a newline. A typical event looks like this:

```json
{
  "event_id": "evt-001",
  "type": "sensor_reading",
  "payload": {"temperature": 31.5, "humidity": 40},
  "metadata": {"location": "lab", "priority": 4}
}
```

## Default stages

`streampipe.cli.build_pipeline()` returns this chain:

1. `JsonParserStage` parses the payload and rewrites it as compact JSON with
   sorted keys. It drops packets that are empty or are not valid JSON.
2. `FilterStage` drops an event when `metadata.priority` is missing. It also
   drops an event whose priority, truncated to an integer, is below 3.
3. `EnricherStage` adds `payload.temperature_alert` when `payload.temperature`
   is present. The value is true when the temperature is above 30.0.
4. `TransformStage` flattens the event into one indented JSON object. The
   object has these fields:
   - `event_id`
   - `event_type` (taken from `type`)
   - `temperature`
   - `humidity`
   - `alert`
   - `location`
   - `priority`

   A field that is missing from the event becomes `null`.
5. `FlinkStage` writes each event to `<source>_<event_id>.json` in its output
   directory. By default that is the current directory. The file holds indented
   JSON. The stage logs the packet's latency in milliseconds and never passes a
   packet on. An event whose `event_id` is missing or is not a string is logged
   as an error and is not written.

## Library use

```python
from streampipe.logger import init_logger
from streampipe.pipeline import Pipeline
from streampipe.sources import FileSource
from streampipe.stages import FilterStage, FlinkStage, JsonParserStage

init_logger("pipeline.log")

pipeline = Pipeline()
pipeline.add_stage(JsonParserStage(), 2)
pipeline.add_stage(FilterStage(), 2)
pipeline.add_stage(FlinkStage("out"), 1)

with pipeline:  # start() on entry, stop() on exit
    source = FileSource("events.txt", 0.2)
    source.start_reading(pipeline.push)
    ...
    source.stop_reading()
```

### Pipeline

`Pipeline` has the following members:

- `add_stage(stage, num_threads=1)` appends a stage. A negative thread count
  raises `ValueError`.
- `start()` links the stages, calls `initialize()` on each one and starts the
  workers.
- `stop()` wakes and joins the workers and calls `shutdown()` on each stage.
- `push(packet)` hands a packet to the first stage.
- The read-only properties `stages` and `running`.

A packet moves to the next stage when a stage returns it. A stage can return
`None` to drop the packet. If a stage raises an exception, the exception is
logged and the packet is dropped.

### Stages

To write your own stage, subclass `streampipe.stages.PipelineStage` and
implement `process(packet)`. `initialize()` and `shutdown()` may be
overridden. By default they only log.

### Packets

`streampipe.packet.DataPacket` is a dataclass with these fields:

- `payload`
- `source`
- `timestamp`, read from a monotonic clock when the packet is created

`age_ms()` returns the whole number of milliseconds since the packet was
created.

### Sources

Each source runs in a background thread between `start_reading(handler)` and
`stop_reading()`. `name()` returns the source's name, and every packet it
produces carries that name as its `source`.

- `FileSource(file_path, poll_interval=0.2)` follows a file in the same way as
  `tail -f`. It emits each complete JSON document as compact JSON. Its name is
  `FileTailSource`.
- `SensorSource(interval_ms)` emits a packet every `interval_ms` milliseconds.
  The payload has the form `temperature=<n>`, where n is a random whole number
  from 20 to 40. Its name is `SensorSource`.
- `SocketSource(host, port)` connects to a TCP server. It emits each chunk it
  receives, up to 1023 bytes, decoded as UTF-8, as one packet. It stops when
  the connection closes. Its name is `SocketSource`.

### Logging

`streampipe.logger.init_logger(filename="pipeline.log")` configures the shared
logger. Only the first call has an effect. `get_logger()` returns the shared
logger.

## Limitations

- The `streampipe` command reads only from files. To use the sensor and socket
  sources, call them from your own code.
- Queues have no size limit, and nothing is persisted between runs.
- A packet that a stage drops or fails on is not retried.
- Apart from the JSON files written by `FlinkStage`, the pipeline produces no
  output.