"""
Per-file stamping pipeline and output naming.
"""

# Standard Library
import io
import pathlib

# PIP3 modules
import PIL.Image

# local repo modules
import photo_date_stamp as pds
import photo_date_stamp.config
import photo_date_stamp.dates
import photo_date_stamp.layout
import photo_date_stamp.text_fit


StampRequest = pds.config.StampRequest
PerFileError = pds.config.PerFileError

OUTPUT_SUFFIX = pds.config.OUTPUT_SUFFIX
PLACEHOLDER_NAME = pds.config.PLACEHOLDER_NAME
MAX_UNIQUE_ATTEMPTS = pds.config.MAX_UNIQUE_ATTEMPTS
MIN_AVAILABLE_WIDTH = pds.config.MIN_AVAILABLE_WIDTH


#============================================
def sanitize_filename(value: str) -> str:
	"""
	Sanitize a string for use as a file name.

	Every character that is not alphanumeric, "-", "_" or "." becomes "_".

	Args:
		value: Input string.

	Returns:
		Sanitized name, or the placeholder name when empty.
	"""
	result: list[str] = []
	for char in value:
		if char.isalnum() or char in "-_.":
			result.append(char)
		else:
			result.append("_")
	sanitized = "".join(result)
	if not sanitized:
		return PLACEHOLDER_NAME
	return sanitized


#============================================
def default_output_name(source_path: pathlib.Path) -> str:
	"""
	Build the default output file name.

	Args:
		source_path: Source image path.

	Returns:
		File name like "photo_watermarked.jpg".
	"""
	return f"{source_path.stem}{OUTPUT_SUFFIX}{source_path.suffix}"


#============================================
def build_date_filename(date_text: str, extension: str) -> str:
	"""
	Build an output file name from a resolved date.

	Args:
		date_text: Normalized date string.
		extension: File extension including the dot.

	Returns:
		File name like "2021-07-04_10_20_30.jpg".
	"""
	return sanitize_filename(date_text) + extension


#============================================
def build_output_path(candidate: pathlib.Path, date_text: str, rename_to_date: bool) -> pathlib.Path:
	"""
	Apply rename-to-date to a candidate output path.

	Args:
		candidate: Planned destination path.
		date_text: Normalized date string.
		rename_to_date: Name the file after the date.

	Returns:
		Destination path before uniqueness checks.
	"""
	if not rename_to_date:
		return candidate
	return candidate.with_name(build_date_filename(date_text, candidate.suffix))


#============================================
def _numbered_path(candidate: pathlib.Path, number: int) -> pathlib.Path:
	return candidate.with_name(f"{candidate.stem}_{number}{candidate.suffix}")


#============================================
def unique_path(candidate: pathlib.Path) -> pathlib.Path:
	"""
	Find a path that does not exist yet.

	Args:
		candidate: Preferred path.

	Returns:
		The candidate when free, else the first free "<stem>_<n><ext>", else
		the candidate again once the attempt budget is spent.
	"""
	if not candidate.exists():
		return candidate
	for number in range(1, MAX_UNIQUE_ATTEMPTS + 1):
		path = _numbered_path(candidate, number)
		if not path.exists():
			return path
	return candidate


#============================================
def write_exclusive(candidate: pathlib.Path, data: bytes) -> pathlib.Path:
	"""
	Write bytes to a unique path using exclusive creation.

	Another worker may claim the same free path between the check and the
	create; the losing worker looks again.

	Args:
		candidate: Preferred path.
		data: File contents.

	Returns:
		Path written.
	"""
	for _ in range(MAX_UNIQUE_ATTEMPTS):
		path = unique_path(candidate)
		try:
			handle = open(path, "xb")
		except FileExistsError:
			continue
		try:
			with handle:
				handle.write(data)
		except OSError:
			# no partial output left behind
			path.unlink(missing_ok=True)
			raise
		return path
	with open(candidate, "wb") as handle:
		handle.write(data)
	return candidate


#============================================
def decode_image(data: bytes) -> tuple[PIL.Image.Image, str]:
	"""
	Decode encoded image bytes.

	Args:
		data: Encoded bytes.

	Returns:
		Tuple of (loaded image, Pillow format tag).
	"""
	image = PIL.Image.open(io.BytesIO(data))
	image.load()
	return image, image.format or "JPEG"


#============================================
def encode_image(image: PIL.Image.Image, format_tag: str, quality: int) -> bytes:
	"""
	Encode an image in its source format.

	Args:
		image: Image to encode.
		format_tag: Pillow format tag of the source.
		quality: JPEG quality.

	Returns:
		Encoded bytes.
	"""
	buffer = io.BytesIO()
	if format_tag == "PNG":
		image.save(buffer, "PNG")
	else:
		image.convert("RGB").save(buffer, "JPEG", quality=quality)
	return buffer.getvalue()


#============================================
def compute_margin(image_size: tuple[int, int], margin_fraction: float) -> int:
	"""
	Margin in pixels from a fraction of the shorter image side.

	Args:
		image_size: Image (width, height).
		margin_fraction: Fraction of the shorter side.

	Returns:
		Margin in pixels.
	"""
	return int(round(min(image_size) * margin_fraction))


#============================================
def stamp_image(request: StampRequest) -> pathlib.Path:
	"""
	Run the full pipeline for one image.

	Date resolution, decode, font size search, layout, encode, and a unique
	exclusive write.

	Args:
		request: Job description.

	Returns:
		Path written.

	Raises:
		PerFileError: When the image cannot be read, decoded, or written.
	"""
	source = request.source_path
	try:
		data = source.read_bytes()
	except OSError as exc:
		raise PerFileError(f"read input: {exc}") from exc

	date_text = pds.dates.resolve_date(source, data)

	try:
		image, format_tag = decode_image(data)
	except (OSError, ValueError, PIL.Image.DecompressionBombError) as exc:
		raise PerFileError(f"decode image: {exc}") from exc

	width, height = image.size
	available_width = max(int(width * request.max_width_fraction), MIN_AVAILABLE_WIDTH)
	target_height = max(int(height * request.max_height_fraction), 1)
	margin = compute_margin(image.size, request.margin_fraction)

	fitted = pds.text_fit.solve_font_size(
		request.font_source,
		date_text,
		available_width,
		target_height,
		width,
		enforce_height=request.enforce_height,
	)
	stamped, _placements = pds.layout.place_text(image, date_text, fitted, margin, available_width)
	image.close()

	try:
		encoded = encode_image(stamped, format_tag, request.jpeg_quality)
	except (OSError, ValueError) as exc:
		raise PerFileError(f"encode {format_tag.lower()}: {exc}") from exc

	destination = build_output_path(request.destination_path, date_text, request.rename_to_date)
	try:
		destination.parent.mkdir(parents=True, exist_ok=True)
	except OSError as exc:
		raise PerFileError(f"create output dir: {exc}") from exc
	try:
		return write_exclusive(destination, encoded)
	except OSError as exc:
		raise PerFileError(f"create output: {exc}") from exc
