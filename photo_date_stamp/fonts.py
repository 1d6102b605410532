"""
Font loading, system font discovery, and the built-in fallback face.
"""

# Standard Library
import dataclasses
import io
import os
import pathlib
import sys

# PIP3 modules
import PIL.ImageFont

# local repo modules
import photo_date_stamp as pds
import photo_date_stamp.config


SetupError = pds.config.SetupError
FittedFace = pds.config.FittedFace

FALLBACK_FONT_SIZE = pds.config.FALLBACK_FONT_SIZE


#============================================
@dataclasses.dataclass(frozen=True)
class FontSource:
	"""
	Parsed font definition shared read-only across workers.

	Each call to create_face() builds an independent face, so concurrent
	size searches never touch each other's state.
	"""
	path: str
	data: bytes

	#============================================
	def create_face(self, size: float) -> PIL.ImageFont.FreeTypeFont:
		"""
		Create a new face at a point size.

		Args:
			size: Point size.

		Returns:
			Pillow FreeType face.
		"""
		return PIL.ImageFont.truetype(io.BytesIO(self.data), size=size)


#============================================
def system_font_dirs() -> list[pathlib.Path]:
	"""
	List platform font directories in lookup order.

	Returns:
		Font directory paths.
	"""
	home = pathlib.Path.home()
	if sys.platform.startswith("win"):
		windir = os.environ.get("WINDIR", "C:\\Windows")
		return [pathlib.Path(windir) / "Fonts"]
	if sys.platform == "darwin":
		return [
			pathlib.Path("/System/Library/Fonts"),
			pathlib.Path("/Library/Fonts"),
			home / "Library" / "Fonts",
		]
	return [
		pathlib.Path("/usr/share/fonts"),
		pathlib.Path("/usr/local/share/fonts"),
		home / ".fonts",
		home / ".local" / "share" / "fonts",
	]


#============================================
def find_system_font(filename: str, font_dirs: list[pathlib.Path] | None = None) -> pathlib.Path | None:
	"""
	Find a bare font file name in the system font directories.

	A direct join is tried first, then a case-insensitive scan of each
	directory.

	Args:
		filename: Font file name like "arial.ttf".
		font_dirs: Optional directory override.

	Returns:
		Font path, or None when not found.
	"""
	if font_dirs is None:
		font_dirs = system_font_dirs()
	lower = filename.lower()
	for font_dir in font_dirs:
		direct = font_dir / filename
		if direct.is_file():
			return direct
		try:
			entries = sorted(font_dir.iterdir())
		except OSError:
			continue
		for entry in entries:
			if entry.name.lower() == lower and entry.is_file():
				return entry
	return None


#============================================
def resolve_font_path(font_arg: str) -> pathlib.Path:
	"""
	Resolve a CLI font argument to a file path.

	Args:
		font_arg: Path or bare file name.

	Returns:
		Font path (may not exist when nothing matched).
	"""
	path = pathlib.Path(font_arg).expanduser()
	if path.name == font_arg and not path.is_absolute() and not path.exists():
		found = find_system_font(font_arg)
		if found is not None:
			return found
	return path


#============================================
def load_font_source(font_arg: str) -> FontSource:
	"""
	Read and validate a font file.

	Args:
		font_arg: Path or bare file name.

	Returns:
		FontSource with the font bytes.

	Raises:
		SetupError: When the font cannot be read or parsed.
	"""
	path = resolve_font_path(font_arg)
	try:
		data = path.read_bytes()
	except OSError as exc:
		raise SetupError(f"read font {path}: {exc}") from exc
	source = FontSource(path=str(path), data=data)
	try:
		source.create_face(pds.config.MIN_FONT_SIZE)
	except (OSError, ValueError) as exc:
		raise SetupError(f"parse font {path}: {exc}") from exc
	return source


#============================================
def face_metrics(face) -> tuple[int, int]:
	"""
	Get ascent and descent in pixels.

	Args:
		face: Pillow font object.

	Returns:
		Tuple of (ascent, descent).
	"""
	if hasattr(face, "getmetrics"):
		ascent, descent = face.getmetrics()
		return (int(ascent), int(descent))
	# bitmap fonts have no metrics; the cell top is the origin
	bbox = face.getbbox("Ag")
	return (int(bbox[3]), 0)


#============================================
def fallback_face() -> FittedFace:
	"""
	Build the fixed built-in face used when no size fits or no font is given.

	This is Pillow's bundled scalable face, which is proportional rather than
	monospace. Pillow builds without FreeType return a bitmap font instead.

	Returns:
		FittedFace flagged as fallback.
	"""
	face = PIL.ImageFont.load_default(size=FALLBACK_FONT_SIZE)
	ascent, descent = face_metrics(face)
	return FittedFace(
		face=face,
		point_size=float(FALLBACK_FONT_SIZE),
		ascent=ascent,
		descent=descent,
		is_fallback=True,
	)
