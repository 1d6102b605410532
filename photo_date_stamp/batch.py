"""
Directory discovery, job planning, and the concurrent batch scheduler.
"""

# Standard Library
import os
import pathlib
import queue
import sys
import threading
from collections.abc import Callable, Iterable, Iterator

# local repo modules
import photo_date_stamp as pds
import photo_date_stamp.config
import photo_date_stamp.pipeline


StampRequest = pds.config.StampRequest
JobResult = pds.config.JobResult
BatchConfig = pds.config.BatchConfig
PerFileError = pds.config.PerFileError
JobCancelledError = pds.config.JobCancelledError

IMAGE_EXTENSIONS = pds.config.IMAGE_EXTENSIONS
JOB_QUEUE_FACTOR = pds.config.JOB_QUEUE_FACTOR
RESULT_QUEUE_FACTOR = pds.config.RESULT_QUEUE_FACTOR

# marks the end of the job stream and a worker exit on the result stream
_STOP = object()


#============================================
class CancelToken:
	"""
	Cooperative cancellation flag shared by the dispatcher and workers.
	"""

	def __init__(self) -> None:
		self._event = threading.Event()

	def cancel(self) -> None:
		self._event.set()

	@property
	def cancelled(self) -> bool:
		return self._event.is_set()


#============================================
def default_concurrency() -> int:
	"""
	Default worker count: available hardware parallelism.

	Returns:
		Worker count, at least 1.
	"""
	return os.cpu_count() or 1


#============================================
def is_image_path(path: pathlib.Path) -> bool:
	return path.suffix.lower() in IMAGE_EXTENSIONS


#============================================
def _report_walk_error(exc: OSError) -> None:
	print(f"Warning: skipping {exc.filename}: {exc.strerror}", file=sys.stderr)


#============================================
def gather_image_paths(root: pathlib.Path, recursive: bool) -> list[pathlib.Path]:
	"""
	Gather image paths to stamp.

	A file root is the only job. A directory is walked in sorted order;
	subdirectories are skipped unless recursive is set. Unreadable
	directories are reported and skipped.

	Args:
		root: Input file or directory.
		recursive: Descend into subdirectories.

	Returns:
		Image paths in walk order.
	"""
	if not root.is_dir():
		return [root]
	paths: list[pathlib.Path] = []
	for dirpath, dirnames, filenames in os.walk(root, onerror=_report_walk_error):
		if recursive:
			dirnames.sort()
		else:
			dirnames.clear()
		for name in sorted(filenames):
			path = pathlib.Path(dirpath) / name
			if is_image_path(path):
				paths.append(path)
	return paths


#============================================
def plan_destination(source_path: pathlib.Path, config: BatchConfig) -> pathlib.Path:
	"""
	Compute the candidate output path for one source image.

	In directory mode the relative path under the input root is replayed under
	the output root. Without an output path, files are written beside their
	source.

	Args:
		source_path: Source image path.
		config: Batch configuration.

	Returns:
		Candidate destination path.
	"""
	name = pds.pipeline.default_output_name(source_path)
	output_path = config.output_path
	if output_path is None:
		return source_path.with_name(name)
	if config.input_path.is_dir():
		try:
			relative = source_path.relative_to(config.input_path)
		except ValueError:
			relative = pathlib.Path(source_path.name)
		return output_path / relative.parent / name
	if config.output_is_dir:
		return output_path / name
	return output_path


#============================================
def plan_jobs(
	paths: list[pathlib.Path],
	config: BatchConfig,
	font_source=None,
) -> list[StampRequest]:
	"""
	Build one request per discovered image before dispatch.

	Args:
		paths: Source image paths.
		config: Batch configuration.
		font_source: Shared font source or None.

	Returns:
		List of StampRequest.
	"""
	requests: list[StampRequest] = []
	for path in paths:
		requests.append(
			StampRequest(
				source_path=path,
				destination_path=plan_destination(path, config),
				margin_fraction=pds.config.percent_to_fraction(config.margin_percent),
				max_width_fraction=pds.config.percent_to_fraction(config.width_percent),
				max_height_fraction=pds.config.percent_to_fraction(config.height_percent),
				font_source=font_source,
				rename_to_date=config.rename_to_date,
				enforce_height=config.enforce_height,
				jpeg_quality=config.jpeg_quality,
			)
		)
	return requests


#============================================
def run_job(
	request: StampRequest,
	cancel_token: CancelToken,
	process: Callable[[StampRequest], pathlib.Path],
) -> JobResult:
	"""
	Run one job and convert its outcome to a result.

	Args:
		request: Job description.
		cancel_token: Cancellation flag, checked before starting.
		process: Per-file pipeline.

	Returns:
		JobResult for the job.
	"""
	if cancel_token.cancelled:
		return JobResult(source_path=request.source_path, error=JobCancelledError("cancelled"))
	try:
		output_path = process(request)
	except PerFileError as exc:
		return JobResult(source_path=request.source_path, error=exc)
	except Exception as exc:
		error = PerFileError(f"{type(exc).__name__}: {exc}")
		error.__cause__ = exc
		return JobResult(source_path=request.source_path, error=error)
	return JobResult(source_path=request.source_path, output_path=output_path)


#============================================
def run_batch(
	requests: Iterable[StampRequest],
	concurrency: int,
	cancel_token: CancelToken,
	process: Callable[[StampRequest], pathlib.Path] | None = None,
) -> Iterator[JobResult]:
	"""
	Stamp images on a bounded pool of worker threads.

	A dispatcher thread feeds a FIFO job queue until the requests run out or
	cancellation is seen. Workers pull jobs and post one result per job to a
	bounded result queue; jobs pulled after cancellation are reported as
	cancelled without being processed. The generator ends after every worker
	has exited, so each dispatched job yields exactly one result. Completion
	order is not input order.

	Args:
		requests: Planned jobs.
		concurrency: Worker count.
		cancel_token: Cancellation flag.
		process: Per-file pipeline, stamp_image by default.

	Yields:
		JobResult per dispatched job.
	"""
	if process is None:
		process = pds.pipeline.stamp_image
	concurrency = max(1, concurrency)
	job_queue: queue.Queue = queue.Queue(maxsize=concurrency * JOB_QUEUE_FACTOR)
	result_queue: queue.Queue = queue.Queue(maxsize=concurrency * RESULT_QUEUE_FACTOR)

	def dispatch() -> None:
		try:
			for request in requests:
				if cancel_token.cancelled:
					break
				job_queue.put(request)
		finally:
			for _ in range(concurrency):
				job_queue.put(_STOP)

	def work() -> None:
		try:
			while True:
				request = job_queue.get()
				if request is _STOP:
					break
				result_queue.put(run_job(request, cancel_token, process))
		finally:
			result_queue.put(_STOP)

	threads = [threading.Thread(target=dispatch, name="stamp-dispatch", daemon=True)]
	for index in range(concurrency):
		threads.append(threading.Thread(target=work, name=f"stamp-worker-{index}", daemon=True))
	for thread in threads:
		thread.start()

	exited = 0
	try:
		while exited < concurrency:
			item = result_queue.get()
			if item is _STOP:
				exited += 1
				continue
			yield item
	finally:
		if exited < concurrency:
			# consumer left early; unblock the workers and let them finish
			cancel_token.cancel()
			while exited < concurrency:
				if result_queue.get() is _STOP:
					exited += 1
		for thread in threads:
			thread.join()
