"""
Shared configuration, constants, and result types.
"""

import dataclasses
import pathlib


IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
OUTPUT_SUFFIX = "_watermarked"
PLACEHOLDER_NAME = "photo"
MAX_UNIQUE_ATTEMPTS = 1000

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
EXIF_TAG_DATETIME = 306
EXIF_TAG_DATETIME_ORIGINAL = 36867
EXIF_IFD_POINTER = 0x8769

DEFAULT_MARGIN_PERCENT = 2.0
DEFAULT_WIDTH_PERCENT = 30.0
DEFAULT_HEIGHT_PERCENT = 20.0
DEFAULT_JPEG_QUALITY = 95
MIN_AVAILABLE_WIDTH = 10

MIN_FONT_SIZE = 4.0
SOLVER_ITERATIONS = 12
FALLBACK_FONT_SIZE = 13

OUTLINE_COLOR = (0, 0, 0, 200)
FILL_COLOR = (255, 255, 255, 230)
OUTLINE_RADIUS_DIVISOR = 20

RESULT_QUEUE_FACTOR = 2
JOB_QUEUE_FACTOR = 2


#============================================
class StampError(Exception):
	"""
	Base error for date stamping.
	"""


#============================================
class SetupError(StampError):
	"""
	Failure before any job runs: unreadable input root or undecodable font.
	"""


#============================================
class PerFileError(StampError):
	"""
	Failure isolated to one job.
	"""


#============================================
class JobCancelledError(StampError):
	"""
	Job was not processed because cancellation was requested.
	"""


#============================================
@dataclasses.dataclass(frozen=True)
class StampRequest:
	source_path: pathlib.Path
	destination_path: pathlib.Path
	margin_fraction: float = DEFAULT_MARGIN_PERCENT / 100.0
	max_width_fraction: float = DEFAULT_WIDTH_PERCENT / 100.0
	max_height_fraction: float = DEFAULT_HEIGHT_PERCENT / 100.0
	font_source: object | None = None
	rename_to_date: bool = False
	enforce_height: bool = True
	jpeg_quality: int = DEFAULT_JPEG_QUALITY


@dataclasses.dataclass
class FittedFace:
	face: object
	point_size: float
	ascent: int
	descent: int
	is_fallback: bool = False

	@property
	def line_height(self) -> int:
		return self.ascent + self.descent


@dataclasses.dataclass(frozen=True)
class Placement:
	line: str
	x: int
	y: int


@dataclasses.dataclass
class JobResult:
	source_path: pathlib.Path
	output_path: pathlib.Path | None = None
	error: Exception | None = None

	@property
	def ok(self) -> bool:
		return self.error is None

	@property
	def cancelled(self) -> bool:
		return isinstance(self.error, JobCancelledError)


@dataclasses.dataclass
class BatchConfig:
	input_path: pathlib.Path
	output_path: pathlib.Path | None
	output_is_dir: bool
	margin_percent: float
	width_percent: float
	height_percent: float
	recursive: bool
	font_path: str | None
	rename_to_date: bool
	concurrency: int
	enforce_height: bool
	jpeg_quality: int


@dataclasses.dataclass
class BatchSummary:
	succeeded: int = 0
	failed: int = 0
	cancelled: int = 0

	@property
	def total(self) -> int:
		return self.succeeded + self.failed + self.cancelled

	#============================================
	def add(self, result: JobResult) -> None:
		"""
		Count one job result.

		Args:
			result: Finished job result.
		"""
		if result.ok:
			self.succeeded += 1
		elif result.cancelled:
			self.cancelled += 1
		else:
			self.failed += 1


#============================================
def percent_to_fraction(value: float) -> float:
	"""
	Convert a percentage to a fraction clamped to 0.0-1.0.

	Args:
		value: Percent value.

	Returns:
		Fraction value.
	"""
	return max(0.0, min(100.0, value)) / 100.0
