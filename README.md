# dupscan

`dupscan` finds duplicate files under a directory tree. It narrows candidates down in stages so that only likely duplicates are ever compared in full:

1. **Size** – files whose size no other file shares are dropped.
2. **Checksum** – a CRC-32 of the first 512 bytes of each remaining file is computed, and files whose checksum is not shared are dropped.
3. **Match** – the survivors are compared byte by byte and gathered into groups of identical files.

Every stage runs as a pool of worker threads linked by unbounded queues, so large trees are walked and read concurrently. Symbolic links to directories are not followed.

## Installation

```
pip install .
```

## Usage

Run it from the directory where you want the configuration, result and log files to live:

```
dupscan
```

The command takes no options of its own (`dupscan --help` shows a short description). All settings come from a configuration file named `fdd-config.yml` in the current directory. If that file cannot be read, it is created with the default settings and the scan goes on with those defaults:

```yaml
Root Path: .
File name for results: fdd-result.txt
File name for logs: fdd-output.log
Logging level (info/debug): debug
Adds source info in logs: false
```

Edit the file to point `Root Path` at the tree you want to scan, then run `dupscan` again. The configuration in use is printed at start. Settings missing from the file keep their defaults; a setting of the wrong type is an error. The logging level accepts `debug`, `info`, `warn` or `error`; anything else means `info`.

While it works, a progress line is printed every 10 seconds: the number of running threads, then counters for each stage written as `received_pending_passed`, then the time elapsed. Press Ctrl+C to stop early; the groups found up to that point are still saved.

When it finishes, a summary is printed, showing how many folders and files were processed, how well each stage filtered, and how many duplicate groups and files were found. Logs are written to the log file, which is truncated at each run.

### The result file

Each group of identical files starts with a header line, followed by one path per line:

```
     2  {100  3456789012  0}
./backup/a.jpg
./photos/a.jpg
```

The header holds the number of files in the group, then the file size, the checksum and the group number. The group number tells apart files that share a size and checksum but differ in content. Groups are sorted by size, then checksum, then group number, and the paths in each group are sorted.

## Using it as a library

```python
import threading

from dupscan.engine import get_engine

engine = get_engine()
finished = threading.Event()
cancel = threading.Event()

engine.run(cancel, "/path/to/scan", finished.set)
finished.wait()

for element in engine.result():
    print(element.size, element.hash, element.group, element.paths)

print(engine.progress())  # JSON counters for every stage
```

`SearchEngine.run` starts the search in the background and calls the callback when it is over. `SearchEngine.result()` returns `None` until then, and afterwards a `Result` holding `Element` objects in its `elements` list. `SearchEngine.progress()` returns the current metrics as JSON bytes: the start time, the duration in nanoseconds, and `inpQueue`/`outQueue` counts and sizes for the `fetch`, `size`, `hash`, `match` and `pack` stages.

Set `cancel` to stop a running scan early.

Other modules can be used on their own: `dupscan.config.load_config` reads or creates the configuration file, `dupscan.logger.new_logger` sets up text or JSON log output, and `dupscan.monitor.format_statistic` builds the final summary of a finished search.

## What it does not do

`dupscan` only reports duplicates; it never deletes, moves or links files. The folder to scan and the output file names are taken from the configuration file only, not from the command line.