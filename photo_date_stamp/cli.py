"""
CLI entry points for stamping capture dates onto photos.
"""

# Standard Library
import argparse
import os
import pathlib
import signal
import sys
import time

# local repo modules
import photo_date_stamp as pds
import photo_date_stamp.batch
import photo_date_stamp.config
import photo_date_stamp.fonts
import photo_date_stamp.pipeline


BatchConfig = pds.config.BatchConfig
BatchSummary = pds.config.BatchSummary
JobResult = pds.config.JobResult
SetupError = pds.config.SetupError
PerFileError = pds.config.PerFileError

DEFAULT_MARGIN_PERCENT = pds.config.DEFAULT_MARGIN_PERCENT
DEFAULT_WIDTH_PERCENT = pds.config.DEFAULT_WIDTH_PERCENT
DEFAULT_HEIGHT_PERCENT = pds.config.DEFAULT_HEIGHT_PERCENT
DEFAULT_JPEG_QUALITY = pds.config.DEFAULT_JPEG_QUALITY

EXIT_OK = 0
EXIT_SETUP_ERROR = 1


#============================================
def output_names_directory(output_arg: str | None) -> bool:
	"""
	Decide whether an output argument names a directory.

	Args:
		output_arg: Raw -o value.

	Returns:
		True for an existing directory or a trailing path separator.
	"""
	if not output_arg:
		return False
	if os.path.isdir(output_arg):
		return True
	return output_arg.endswith(os.sep) or output_arg.endswith("/")


#============================================
def build_config(args: argparse.Namespace) -> BatchConfig:
	"""
	Build the batch config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		BatchConfig.
	"""
	input_path = pathlib.Path(args.input_path).expanduser()
	output_path = None
	if args.output_path:
		output_path = pathlib.Path(args.output_path).expanduser()
	concurrency = args.jobs
	if concurrency is None:
		concurrency = pds.batch.default_concurrency()
	return BatchConfig(
		input_path=input_path,
		output_path=output_path,
		output_is_dir=output_names_directory(args.output_path),
		margin_percent=args.margin,
		width_percent=args.width_percent,
		height_percent=args.height_percent,
		recursive=args.recursive,
		font_path=args.font,
		rename_to_date=args.rename_to_date,
		concurrency=concurrency,
		enforce_height=not args.accept_overflow,
		jpeg_quality=args.quality,
	)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Stamp the capture date onto JPEG and PNG photos.")
	parser.add_argument("input_path", help="Image file or directory.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument(
		"-o", "--output", dest="output_path", default=None,
		help="Output file or directory (trailing separator means directory). Default: beside input.",
	)
	output_group.add_argument("-d", "--rename-to-date", dest="rename_to_date", action="store_true", help="Name outputs after the date.")
	output_group.add_argument("-D", "--no-rename-to-date", dest="rename_to_date", action="store_false", help="Keep source names.")
	output_group.add_argument("-q", "--quality", dest="quality", type=int, default=DEFAULT_JPEG_QUALITY, help="JPEG quality.")

	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument(
		"-m", "--margin", dest="margin", type=float, default=DEFAULT_MARGIN_PERCENT,
		help="Margin as percent of the shorter image side.",
	)
	layout_group.add_argument(
		"-w", "--width-percent", dest="width_percent", type=float, default=DEFAULT_WIDTH_PERCENT,
		help="Max text width as percent of image width (1-100).",
	)
	layout_group.add_argument(
		"-H", "--height-percent", dest="height_percent", type=float, default=DEFAULT_HEIGHT_PERCENT,
		help="Max text block height as percent of image height (1-100).",
	)
	layout_group.add_argument(
		"--accept-overflow", dest="accept_overflow", action="store_true",
		help="Keep the widest-fitting size even when the block is too tall.",
	)
	layout_group.add_argument("-f", "--font", dest="font", default=None, help="TTF/OTF path or bare font file name.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("-r", "--recursive", dest="recursive", action="store_true", help="Recurse into subdirectories.")
	behavior_group.add_argument("-R", "--no-recursive", dest="recursive", action="store_false", help="Only the top directory.")
	behavior_group.add_argument("-j", "--jobs", dest="jobs", type=int, default=None, help="Worker count. Default: CPU count.")

	parser.set_defaults(
		rename_to_date=False,
		recursive=False,
		accept_overflow=False,
	)

	args = parser.parse_args(argv)
	if not 1 <= args.width_percent <= 100:
		parser.error("--width-percent must be between 1 and 100")
	if not 1 <= args.height_percent <= 100:
		parser.error("--height-percent must be between 1 and 100")
	if args.margin < 0:
		parser.error("--margin must not be negative")
	if args.jobs is not None and args.jobs < 1:
		parser.error("--jobs must be at least 1")
	return args


#============================================
def report_result(result: JobResult) -> None:
	"""
	Print one outcome line for a job.

	Args:
		result: Finished job result.
	"""
	if result.ok:
		print(f"wrote {result.output_path}")
	elif result.cancelled:
		print(f"Cancelled: {result.source_path}", file=sys.stderr)
	else:
		print(f"Error: {result.source_path}: {result.error}", file=sys.stderr)


#============================================
def run_single(config: BatchConfig) -> int:
	"""
	Stamp one file; any failure halts with a non-zero exit code.

	Args:
		config: Batch configuration.

	Returns:
		Exit code.
	"""
	font_source = None
	if config.font_path:
		try:
			font_source = pds.fonts.load_font_source(config.font_path)
		except SetupError as exc:
			print(f"Error: {exc}", file=sys.stderr)
			return EXIT_SETUP_ERROR
	request = pds.batch.plan_jobs([config.input_path], config, font_source)[0]
	try:
		output_path = pds.pipeline.stamp_image(request)
	except PerFileError as exc:
		print(f"Error: process image: {exc}", file=sys.stderr)
		return EXIT_SETUP_ERROR
	print(f"wrote {output_path}")
	return EXIT_OK


#============================================
def run_directory(config: BatchConfig, cancel_token: "pds.batch.CancelToken | None" = None) -> BatchSummary:
	"""
	Stamp every image under a directory on a worker pool.

	Per-file failures are reported and never stop the batch. SIGINT sets the
	cancel token; queued jobs are then reported as cancelled.

	Args:
		config: Batch configuration.
		cancel_token: Optional token; a new one is made when omitted.

	Returns:
		BatchSummary of outcomes.
	"""
	if cancel_token is None:
		cancel_token = pds.batch.CancelToken()
	font_source = None
	if config.font_path:
		try:
			font_source = pds.fonts.load_font_source(config.font_path)
		except SetupError as exc:
			print(f"Warning: {exc}; using built-in font", file=sys.stderr)

	print(f"Input directory: {config.input_path}")
	if config.output_path is not None:
		print(f"Output directory: {config.output_path}")
	print(f"Recursive: {config.recursive}")
	print(f"Workers: {config.concurrency}")

	paths = pds.batch.gather_image_paths(config.input_path, config.recursive)
	print(f"Images found: {len(paths)}")
	requests = pds.batch.plan_jobs(paths, config, font_source)

	summary = BatchSummary()
	start_time = time.perf_counter()
	previous_handler = None
	try:
		previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_token.cancel())
	except ValueError:
		# not the main thread; the caller owns cancellation
		previous_handler = None
	try:
		for result in pds.batch.run_batch(requests, config.concurrency, cancel_token):
			report_result(result)
			summary.add(result)
	finally:
		if previous_handler is not None:
			signal.signal(signal.SIGINT, previous_handler)
	total_time = time.perf_counter() - start_time

	print(f"Stamped: {summary.succeeded}")
	if summary.failed:
		print(f"Failed: {summary.failed}")
	if summary.cancelled:
		print(f"Cancelled jobs: {summary.cancelled}")
	print(f"Timing: total={total_time:.2f}s")
	return summary


#============================================
def run_pipeline(config: BatchConfig) -> int:
	"""
	Run single-file or directory mode.

	Args:
		config: Batch configuration.

	Returns:
		Exit code.
	"""
	if not config.input_path.exists():
		print(f"Error: stat input: {config.input_path} does not exist", file=sys.stderr)
		return EXIT_SETUP_ERROR
	if not config.input_path.is_dir():
		return run_single(config)
	if not os.access(config.input_path, os.R_OK | os.X_OK):
		print(f"Error: cannot read input directory {config.input_path}", file=sys.stderr)
		return EXIT_SETUP_ERROR
	run_directory(config)
	return EXIT_OK


#============================================
def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	config = build_config(args)
	exit_code = run_pipeline(config)
	if exit_code != EXIT_OK:
		sys.exit(exit_code)
