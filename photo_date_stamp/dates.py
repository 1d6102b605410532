"""
Capture date resolution from EXIF or file metadata.
"""

# Standard Library
import datetime
import io
import pathlib

# PIP3 modules
import PIL.Image

# local repo modules
import photo_date_stamp as pds
import photo_date_stamp.config


DATE_FORMAT = pds.config.DATE_FORMAT
EXIF_TAG_DATETIME = pds.config.EXIF_TAG_DATETIME
EXIF_TAG_DATETIME_ORIGINAL = pds.config.EXIF_TAG_DATETIME_ORIGINAL
EXIF_IFD_POINTER = pds.config.EXIF_IFD_POINTER


#============================================
def normalize_exif_date(value: str) -> str:
	"""
	Rewrite an EXIF "YYYY:MM:DD HH:MM:SS" date to "YYYY-MM-DD HH:MM:SS".

	Only the two date separators are replaced; other strings are returned
	unchanged.

	Args:
		value: Raw date string.

	Returns:
		Normalized date string.
	"""
	if len(value) >= 10 and value[4] == ":" and value[7] == ":":
		return value[:4] + "-" + value[5:7] + "-" + value[8:]
	return value


#============================================
def _clean_exif_value(value: object) -> str:
	if isinstance(value, bytes):
		value = value.decode("ascii", errors="ignore")
	if not isinstance(value, str):
		return ""
	return value.strip("\x00").strip()


#============================================
def extract_capture_date(data: bytes) -> str | None:
	"""
	Read the raw EXIF capture date from encoded image bytes.

	DateTimeOriginal from the Exif IFD wins over DateTime from IFD0.

	Args:
		data: Encoded image bytes.

	Returns:
		Raw EXIF date string, or None when absent or unreadable.
	"""
	try:
		with PIL.Image.open(io.BytesIO(data)) as image:
			exif = image.getexif()
	except (OSError, ValueError, PIL.Image.DecompressionBombError):
		return None
	if not exif:
		return None
	try:
		exif_ifd = exif.get_ifd(EXIF_IFD_POINTER)
	except (KeyError, OSError, ValueError):
		exif_ifd = {}
	value = _clean_exif_value(exif_ifd.get(EXIF_TAG_DATETIME_ORIGINAL))
	if value:
		return value
	value = _clean_exif_value(exif.get(EXIF_TAG_DATETIME))
	if value:
		return value
	return None


#============================================
def resolve_date(path: pathlib.Path, data: bytes) -> str:
	"""
	Resolve the date text for a photo.

	Order: EXIF capture date, file modification time, current time.
	This never fails.

	Args:
		path: Source image path.
		data: Encoded image bytes.

	Returns:
		Normalized date string.
	"""
	date_text = extract_capture_date(data)
	if not date_text:
		try:
			mtime = path.stat().st_mtime
			date_text = datetime.datetime.fromtimestamp(mtime).strftime(DATE_FORMAT)
		except OSError:
			date_text = datetime.datetime.now().strftime(DATE_FORMAT)
	return normalize_exif_date(date_text)
