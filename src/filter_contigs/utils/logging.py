"""
Logging for one filter_contigs job.
The console shows progress, log.txt in the job's scratch area keeps everything.
"""

import logging
import queue
import sys
from pathlib import Path
from typing import List
from logging.handlers import QueueHandler, QueueListener

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILENAME = "log.txt"

def _job_handlers(log_file: Path, console_level: int) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(formatter)

    job_log = logging.FileHandler(log_file, encoding='utf-8')
    job_log.setLevel(logging.DEBUG)
    job_log.setFormatter(formatter)
    return [console, job_log]

def setup_logging(log_dir: Path, verbose: bool = False) -> QueueListener:
    """
    Route all loggers through a queue to the console and the job's log.txt.

    Callback requests block for minutes at a time, so handlers run on the
    listener's thread rather than in the pipeline's.

    :param log_dir: Directory receiving log.txt, usually the scratch root.
    :param verbose: Echo DEBUG records (e.g. every dropped contig) to the console.
    :return: The running listener; the caller stops it when the job ends.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILENAME
    console_level = logging.DEBUG if verbose else logging.INFO

    records = queue.Queue(-1)
    listener = QueueListener(records, *_job_handlers(log_file, console_level), respect_handler_level=True)
    listener.start()

    # Replace whatever the host installed; the queue is the only root handler
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(QueueHandler(records))

    logging.getLogger(__name__).info(f"Job log: {log_file}")
    return listener
